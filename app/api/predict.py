from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from app.api.deps import get_gateway, get_preview_limit
from app.schemas.predictions import QueuedOut, ViewModel
from app.services.exceptions import InternalError, InvalidRequest
from app.services.gateway import InferenceGateway, PredictionOutcome
from app.services.presenter import derive_view_model


router = APIRouter(tags=["predict"])


def _read_upload(file: UploadFile | None, upload: UploadFile | None) -> tuple[bytes, str]:
    uploaded = file if file is not None else upload
    if uploaded is None:
        raise InvalidRequest("No file uploaded")

    if not uploaded.filename or uploaded.file is None:
        raise InvalidRequest("Uploaded file path not found")

    try:
        raw = uploaded.file.read()
    except OSError as e:
        raise InternalError(f"Failed to read uploaded file: {e}") from e

    return raw, uploaded.filename


def _queued_response() -> JSONResponse:
    return JSONResponse(status_code=202, content=QueuedOut().model_dump())


def _run(gateway: InferenceGateway, file: UploadFile | None, upload: UploadFile | None) -> PredictionOutcome:
    raw, filename = _read_upload(file, upload)
    return gateway.submit(raw, filename)


@router.post("/predict")
def predict(
    file: UploadFile | None = File(None),
    upload: UploadFile | None = File(None),
    gateway: InferenceGateway = Depends(get_gateway),
):
    """Forward a CSV to the inference service and return its JSON verbatim."""
    outcome = _run(gateway, file, upload)
    if outcome.is_queued:
        return _queued_response()
    return JSONResponse(status_code=200, content=outcome.result)


@router.post("/analyze", response_model=ViewModel)
def analyze(
    full: bool = False,
    file: UploadFile | None = File(None),
    upload: UploadFile | None = File(None),
    gateway: InferenceGateway = Depends(get_gateway),
    preview_limit: int = Depends(get_preview_limit),
):
    """Same as /predict, but answers with the derived view-model instead of the raw result."""
    outcome = _run(gateway, file, upload)
    if outcome.is_queued:
        return _queued_response()
    return derive_view_model(outcome.result, preview_limit=None if full else preview_limit)


@router.post("/view-model", response_model=ViewModel)
def view_model(
    result: Any = Body(None),
    full: bool = False,
    preview_limit: int = Depends(get_preview_limit),
):
    return derive_view_model(result, preview_limit=None if full else preview_limit)
