"""
MicroVolunteer FastAPI Application

REST API for volunteer tasks and participations.

Provides:
- Task creation, editing and status lifecycle
- Joining and leaving tasks under capacity limits
- Per-volunteer participation history and statistics, volunteer rankings
- Task categories managed by administrators
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .auth import ClaimsResolver, TokenIntrospectionClient, init_auth
from .config import get_settings
from .core.exceptions import MicroVolunteerException
from .core.interfaces import ICategoryRepository, ITaskRepository
from .infrastructure.persistence.memory import InMemoryCategoryRepository, InMemoryTaskRepository
from .infrastructure.persistence.sql import (
    SqlCategoryRepository,
    SqlTaskRepository,
    create_schema,
    get_engine,
    get_session_factory,
)
from .logging_config import configure_logging
from .routes import categories, participations, tasks
from .routes.dependencies import init_services
from .services import (
    CapacityGate,
    CategoryService,
    ParticipationCoordinator,
    TaskLifecycleManager,
)

# Settings
settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager"""
    configure_logging(settings.log_level, settings.log_format)

    # Startup
    engine = None
    repository: ITaskRepository
    category_repository: ICategoryRepository
    if settings.database_url:
        engine = get_engine(settings.database_url, echo=settings.database_echo)
        if settings.database_create_schema:
            await create_schema(engine)
        session_factory = get_session_factory(engine)
        repository = SqlTaskRepository(
            session_factory,
            lock_timeout_seconds=settings.lock_timeout_seconds,
        )
        category_repository = SqlCategoryRepository(session_factory)
    else:
        repository = InMemoryTaskRepository(lock_timeout=settings.lock_timeout_seconds)
        category_repository = InMemoryCategoryRepository()

    coordinator = ParticipationCoordinator(repository, CapacityGate())
    category_service = CategoryService(category_repository, repository)
    lifecycle = TaskLifecycleManager(repository, coordinator, category_service)
    init_services(coordinator, lifecycle, category_service)

    init_auth(
        TokenIntrospectionClient(
            settings.identity_introspection_url,
            client_id=settings.identity_client_id,
            client_secret=settings.identity_client_secret,
            timeout=settings.identity_timeout,
        ),
        ClaimsResolver.from_settings(settings),
    )

    logger.info(
        "service_started",
        service=settings.service_name,
        version=__version__,
        storage="sql" if engine else "memory",
        docs=f"http://{settings.host}:{settings.port}/docs",
    )

    yield

    # Shutdown
    if engine is not None:
        await engine.dispose()
    logger.info("service_stopped", service=settings.service_name)


# Create FastAPI app
app = FastAPI(
    title="MicroVolunteer",
    description="Volunteer task and participation lifecycle service",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MicroVolunteerException)
async def business_exception_handler(request: Request, exc: MicroVolunteerException):
    """Map domain exceptions to their HTTP status and error body"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        error_code=exc.error_code,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(tasks.router)
app.include_router(participations.router)
app.include_router(categories.router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.service_name,
        "version": __version__,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microvolunteer.api:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
