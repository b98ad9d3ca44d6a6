# app/modules/settings/schemas.py

from typing import Tuple

from pydantic import BaseModel, Field, model_validator

TIMEOUT_KEY = "session.timeout.duration"
WARNING_KEY = "session.timeout.warning"


def normalize_timeout(timeout_minutes: int, warning_minutes: int) -> Tuple[int, int]:
    """
    timeout >= 1 and 0 <= warning < timeout, whatever the store holds.
    """
    timeout = max(1, int(timeout_minutes))
    warning = min(max(int(warning_minutes), 0), timeout - 1)
    return timeout, warning


class SessionTimeoutPolicy(BaseModel):
    timeout_minutes: int
    warning_minutes: int

    def normalized(self) -> "SessionTimeoutPolicy":
        timeout, warning = normalize_timeout(self.timeout_minutes, self.warning_minutes)
        return SessionTimeoutPolicy(timeout_minutes=timeout, warning_minutes=warning)


class SessionTimeoutResponse(SessionTimeoutPolicy):
    success: bool = True
    source: str = "remote"


class SessionTimeoutUpdate(BaseModel):
    timeout_minutes: int = Field(..., ge=1, le=1440)
    warning_minutes: int = Field(..., ge=0, le=1440)

    @model_validator(mode="after")
    def warning_before_timeout(self):
        if self.warning_minutes >= self.timeout_minutes:
            raise ValueError("warning_minutes must be less than timeout_minutes")
        return self
