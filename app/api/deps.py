from __future__ import annotations

from app.core.config import settings
from app.services.gateway import InferenceGateway
from app.services.inference_client import GradioClientAdapter


def get_gateway() -> InferenceGateway:
    """One gateway (and one lazily connected Gradio client) per request."""
    client = GradioClientAdapter(
        space=settings.gradio_space,
        api_name=settings.gradio_api_name,
        queue_timeout_seconds=settings.upstream_queue_timeout_seconds,
        processing_timeout_seconds=settings.upstream_processing_timeout_seconds,
        hf_token=settings.hf_token,
    )
    return InferenceGateway(
        client,
        max_attempts=settings.predict_max_attempts,
        retry_delay_seconds=settings.predict_retry_delay_seconds,
        uploads_dir=settings.uploads_dir,
    )


def get_preview_limit() -> int:
    return settings.preview_limit
