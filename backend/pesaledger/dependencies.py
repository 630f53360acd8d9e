"""
FastAPI dependencies.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from pesaledger.container import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = get_container(request).session_factory()
    try:
        yield db
    finally:
        db.close()
