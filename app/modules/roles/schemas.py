# app/modules/roles/schemas.py

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class Action(str, Enum):
    INVITE_ISSUE = "invite.issue"
    USER_LIST = "user.list"
    USER_DELETE = "user.delete"
    SETTINGS_READ = "settings.read"
    SETTINGS_UPDATE = "settings.update"
    AUDIT_READ = "audit.read"
