import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.predict import router as predict_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.schemas.predictions import ErrorOut
from app.services.exceptions import GatewayError

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="DLWAT Gateway", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(predict_router, prefix="/api")


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    # every error body uses the {"error": ...} envelope
    return JSONResponse(status_code=status_code, content=ErrorOut(error=message).model_dump(), headers=headers)


@app.exception_handler(GatewayError)
def handle_gateway_error(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error("Predict error: %s", exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return _error(exc.status_code, message, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request")


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return _error(500, str(exc) or "Prediction error")


@app.get("/health")
def health():
    return {"status": "ok"}
