# app/dependencies/database.py

from typing import AsyncGenerator

from app.core.database import db


async def get_db_connection() -> AsyncGenerator:
    """
    Pooled connection for the duration of one request.
    """
    async for conn in db.get_connection():
        yield conn
