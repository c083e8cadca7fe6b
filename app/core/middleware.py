# app/core/middleware.py
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import settings

logger = logging.getLogger(__name__)


def setup_middleware(app: FastAPI):
    """CORS, id de request y log de acceso con la organización que actúa root"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        organization = request.headers.get("X-Organization-Id")
        scope = f" [org {organization}]" if organization else ""
        logger.info(
            f"{request.method} {request.url.path}{scope} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s - id {request_id}"
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        return response
