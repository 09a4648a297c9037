import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Response, Request, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from msgboard import __version__
from msgboard.config import settings, get_settings
from msgboard.exceptions import MessageNotFound, MessageValidationError, StoreError
from msgboard.logging_utils import setup_logging, RequestLoggingMiddleware, log_request_data
from msgboard.messages import MessageService
from msgboard.metrics import record_message_operation, get_metrics, get_metrics_content_type
from msgboard.models import Message
from msgboard.schemas import (
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    SaveRequest,
    SaveResponse,
)
from msgboard.storage import MessageStore


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: build the store from current settings and create the data file
    """
    current = get_settings()
    store = MessageStore(current.DATA_FILE, read_failure_policy=current.READ_FAILURE_POLICY)
    store.init()
    app.state.store = store
    logger.info("Server started", extra={"port": current.PORT, "data_file": current.DATA_FILE})
    yield


app = FastAPI(
    title="Message Board API",
    description="Save, list and delete short text messages",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def get_message_service(request: Request) -> MessageService:
    """Dependency returning a service bound to the app's store."""
    return MessageService(request.app.state.store, max_length=get_settings().MAX_MESSAGE_LENGTH)


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error).model_dump())


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(MessageValidationError)
async def validation_error_handler(request: Request, exc: MessageValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request body", extra={"errors": len(exc.errors())})
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.exception_handler(MessageNotFound)
async def not_found_handler(request: Request, exc: MessageNotFound) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "Message not found")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Route misses (unknown path or unsupported method) all read as 404
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(status.HTTP_404_NOT_FOUND, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", extra={"error": str(exc), "path": request.url.path}, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# =============================================================================
# Health Check Route
# =============================================================================

@app.get("/health", response_model=HealthResponse)
async def health(service: MessageService = Depends(get_message_service)) -> HealthResponse:
    """
    Liveness check. Always 200 with status "healthy"; reports the number of
    stored messages but does not verify the data file beyond reading it.
    """
    result = service.health()
    return HealthResponse(
        status=result["status"],
        timestamp=result["timestamp"],
        messagesCount=result["count"],
    )


# =============================================================================
# Message Routes
# =============================================================================

@app.post(
    "/save",
    response_model=SaveResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Text missing, blank or too long"},
        500: {"model": ErrorResponse, "description": "Message could not be stored"},
    }
)
async def save_message(
    payload: SaveRequest,
    request: Request,
    service: MessageService = Depends(get_message_service),
) -> SaveResponse:
    """
    Store a new message.

    The text is trimmed and must be 1-500 characters long. Responds with
    the generated id and the stored message.
    """
    try:
        message = service.create(payload.text)
    except MessageValidationError:
        record_message_operation("create", "rejected")
        log_request_data(request, result="rejected")
        raise
    except StoreError as e:
        logger.error("Save failed", extra={"error": str(e)})
        record_message_operation("create", "error")
        log_request_data(request, result="error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save message"
        )

    record_message_operation("create", "created")
    log_request_data(request, message_id=message.id, result="created")
    return SaveResponse(saved=True, id=message.id, message=message)


@app.get(
    "/messages",
    response_model=list[Message],
    responses={500: {"model": ErrorResponse, "description": "Messages could not be read"}},
)
async def list_messages(
    service: MessageService = Depends(get_message_service),
) -> list[Message]:
    """
    List every stored message, newest first. No pagination.
    """
    try:
        messages = service.list_messages()
    except StoreError as e:
        logger.error("Get messages failed", extra={"error": str(e)})
        record_message_operation("list", "error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve messages"
        )

    record_message_operation("list", "ok")
    logger.debug(f"GET /messages: returned {len(messages)} messages")
    return messages


@app.delete(
    "/messages/{message_id}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No message with this id"},
        500: {"model": ErrorResponse, "description": "Message could not be deleted"},
    }
)
async def delete_message(
    message_id: str,
    request: Request,
    service: MessageService = Depends(get_message_service),
) -> DeleteResponse:
    """
    Delete the message with the given id.
    """
    try:
        service.delete(message_id)
    except MessageNotFound:
        record_message_operation("delete", "not_found")
        log_request_data(request, message_id=message_id, result="not_found")
        raise
    except StoreError as e:
        logger.error("Delete failed", extra={"error": str(e)})
        record_message_operation("delete", "error")
        log_request_data(request, message_id=message_id, result="error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete message"
        )

    record_message_operation("delete", "deleted")
    log_request_data(request, message_id=message_id, result="deleted")
    return DeleteResponse(deleted=True, id=message_id)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics: http_requests_total,
    message_operations_total and request_latency_seconds.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )


# Static front-end at the web root; mounted last so API routes win
if Path(settings.STATIC_DIR).is_dir():
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    current = get_settings()
    uvicorn.run(app, host=current.HOST, port=current.PORT, log_config=None)
