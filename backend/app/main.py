import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import Settings, get_settings
from app.core.database import Base, build_engine, build_session_factory
from app.core.exceptions import AppError, AuthenticationError, ValidationError
from app.core.security import TokenService
from app.api.routes import auth, todos

# Import models so their tables are registered on Base.metadata
from app.models import todo, user  # noqa: F401

logger = logging.getLogger(__name__)


def error_response(exc: AppError) -> JSONResponse:
    """Render an AppError as {"error": ..., "kind": ...}"""
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "kind": exc.kind},
        headers=headers,
    )


def describe_validation_errors(exc: RequestValidationError) -> str:
    """Summarize pydantic errors as 'Missing or invalid fields: email, password'"""
    fields = []
    for error in exc.errors():
        # loc is e.g. ("body", "email"); a missing body has loc ("body",)
        name = ".".join(str(part) for part in error.get("loc", ())[1:])
        if name and name not in fields:
            fields.append(name)
    if not fields:
        return "Missing fields"
    return f"Missing or invalid fields: {', '.join(fields)}"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(ValidationError(describe_validation_errors(exc)))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        # Store failures are fatal to the request; details stay in the log
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return error_response(AppError())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API.

    Settings are loaded from the environment when not given; a missing
    SECRET_KEY stops startup here. Run with:
        uvicorn app.main:create_app --factory
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = build_engine(settings.DATABASE_URL)

    # Create tables from all models that inherit from Base if they don't exist
    # In production, use migrations (Alembic) instead of create_all
    Base.metadata.create_all(bind=engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Shutdown: release pooled connections"""
        yield
        engine.dispose()

    app = FastAPI(
        title="Todo API",
        description="Multi-user todo list with bearer token authentication",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Per-app state instead of module globals - handlers reach these through dependencies
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )

    # CORS middleware - lets the web build of the client call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(todos.router)

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": "Todo API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app
