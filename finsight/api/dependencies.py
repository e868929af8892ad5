"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import Optional, Sequence

from fastapi import Request
from finsight.config import Settings, settings


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings() -> Settings:
    """Provide application settings (overridable in tests)"""
    return settings


def resolve_as_of(as_of: Optional[date], transactions: Sequence = ()) -> Optional[date]:
    """
    Reference date handed to the engines.

    An explicit `as_of` wins. With transactions the engines anchor on the
    latest one, so None is passed through. Otherwise the request date is used.
    """
    if as_of is not None or transactions:
        return as_of
    return date.today()
