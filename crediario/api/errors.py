from __future__ import annotations

from fastapi import HTTPException

from crediario.services.errors import DomainError, NotFoundError


def http_error(e: DomainError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
