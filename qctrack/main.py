import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
import structlog

from .config import settings
from .db import Base, engine
from .errors import QCError
from .logging import setup_logging, RequestIdMiddleware
from .models import models  # noqa: F401  (registers tables on Base.metadata)
from .routes.analytics import router as analytics_router
from .routes.collaboration import router as collaboration_router
from .routes.documents import router as documents_router
from .routes.events import router as events_router
from .routes.files import router as files_router
from .routes.inspections import router as inspections_router
from .routes.notifications import router as notifications_router
from .routes.photos import router as photos_router
from .routes.qc import router as qc_router
from .routes.records import router as records_router
from .routes.schedule import router as schedule_router
from .services.container import QCStores, build_stores
from .services.event_hub import hub


logger = structlog.get_logger(__name__)


async def qc_error_handler(request: Request, exc: QCError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, **exc.details})


def create_app(stores: Optional[QCStores] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)
    app.state.stores = stores if stores is not None else build_stores(settings)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(QCError, qc_error_handler)

    # Routers
    app.include_router(notifications_router)
    app.include_router(documents_router)
    app.include_router(inspections_router)
    app.include_router(schedule_router)
    app.include_router(photos_router)
    app.include_router(collaboration_router)
    app.include_router(analytics_router)
    app.include_router(qc_router)
    app.include_router(records_router)
    app.include_router(files_router)
    app.include_router(events_router)

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def _startup():
        logger.info("startup")
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
        app.state.stores.collaboration.start_maintenance()
        hub.attach(app.state.stores.emitters())

    @app.on_event("shutdown")
    async def _shutdown():
        hub.detach()
        await app.state.stores.collaboration.stop_maintenance()

    return app


app = create_app()
