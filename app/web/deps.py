"""FastAPI dependencies for database access and settings."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import get_db

# Type aliases for cleaner endpoints
DBSession = Annotated[Session, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]

__all__ = ["AppSettings", "DBSession", "get_db"]
