import logging
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .config import settings


def setup_logging(level: Optional[str] = None, service: str = "qctrack") -> None:
    """Route structlog through stdlib logging as JSON lines tagged with the service name."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name, logging.INFO))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every log line emitted during a request with its request id and caller."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bound = {"request_id": request_id, "path": request.url.path}
        caller = request.headers.get("X-User-Id")
        if caller:
            bound["caller"] = caller
        structlog.contextvars.bind_contextvars(**bound)
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars(*bound.keys())
        response.headers["X-Request-ID"] = request_id
        return response
