"""Reviews package integration helpers exposed to the application."""

from rms.reviews.api import router
from rms.reviews.domain.container import configure, configure_postgres

__all__ = ["router", "configure", "configure_postgres"]
