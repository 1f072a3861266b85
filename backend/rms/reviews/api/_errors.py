"""Error translation helpers for reviews API."""

from __future__ import annotations

from fastapi import HTTPException

from rms.reviews.domain import exceptions


def to_http_error(exc: exceptions.ReviewError) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	return HTTPException(status_code=exc.status_code, detail=exc.detail)
