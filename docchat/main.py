from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from docchat.api.documents import router as documents_router
from docchat.core.config import get_settings
from docchat.core.errors import (
    DependencyError,
    DocChatError,
    ExtractionError,
    Unauthenticated,
    ValidationError,
)
from docchat.core.logging import get_logger, setup_logging
from docchat.models.api import ErrorResponse
from docchat.services.factory import Services, build_services

logger = get_logger(__name__)

RETRY_MESSAGE = "Something went wrong while processing your request. Please try again."
INTERNAL_MESSAGE = "The service is misconfigured. Please contact the administrator."


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


async def handle_docchat_error(request: Request, exc: DocChatError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, exc.message)
    if isinstance(exc, Unauthenticated):
        return _error(
            status.HTTP_401_UNAUTHORIZED, exc.message, headers={"WWW-Authenticate": "Bearer"}
        )
    if isinstance(exc, ExtractionError):
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message)
    if isinstance(exc, DependencyError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, RETRY_MESSAGE)

    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE)


def create_app(services: Services | None = None) -> FastAPI:
    """Build the application. Services are built from settings at startup unless given."""
    app = FastAPI(title="DocChat")
    app.state.services = services

    app.include_router(documents_router)
    app.add_exception_handler(DocChatError, handle_docchat_error)

    @app.on_event("startup")
    def _startup() -> None:
        if app.state.services is not None:
            return
        # Fail fast if required env vars are missing.
        settings = get_settings()
        setup_logging(level=settings.log_level)
        app.state.services = build_services(settings)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        if app.state.services is not None:
            app.state.services.close()

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
