"""Shared request helpers for routers."""

from typing import Optional

from fastapi import Request

from ..core.config import settings


def environment_key(request: Request, env: Optional[str] = None) -> str:
    """Environment for resolution: ``?env=``, else the environment header, else the default."""
    if env:
        return env
    header = request.headers.get(settings.environment_header)
    if header:
        return header
    return settings.default_environment_key
