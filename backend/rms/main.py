"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rms import reviews
from rms.api import ops
from rms.api.errors import install_error_handlers
from rms.api.middleware_request_id import RequestIdMiddleware
from rms.infra import postgres
from rms.obs import init as obs_init
from rms.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	if pool is not None:
		reviews.configure_postgres(pool)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Review Management System API", version="1.0.0", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins and settings.is_dev():
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials="*" not in allow_origins,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

# Ensure every request carries an X-Request-Id and make it available on request.state
app.add_middleware(RequestIdMiddleware)

app.include_router(reviews.router)
app.include_router(ops.router)


def run() -> None:
	uvicorn.run("rms.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
	run()
