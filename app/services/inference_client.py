from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

import httpx
from gradio_client import Client, handle_file
from gradio_client.exceptions import AppError
from gradio_client.utils import QueueError, Status

from app.services.exceptions import UpstreamError, UpstreamQueued

logger = logging.getLogger(__name__)

# job states that mean "accepted, but nobody has picked it up yet"
_WAITING_CODES = {Status.STARTING, Status.JOINING_QUEUE, Status.IN_QUEUE}


def queued_status(**extra: Any) -> dict[str, Any]:
    """Build the returned form of the queued sentinel."""
    return {"type": "status", "queue": True, **extra}


def is_queued_status(value: Any) -> bool:
    """True for the queued sentinel, as a mapping or as an object (incl. exceptions)."""
    if isinstance(value, dict):
        return value.get("type") == "status" and bool(value.get("queue"))
    return getattr(value, "type", None) == "status" and bool(getattr(value, "queue", False))


class BaseInferenceClient(ABC):
    """Contract for the remote prediction service."""

    @abstractmethod
    def predict(self, file_path: str) -> Any:
        """Return the final payload or the queued sentinel for one submission."""


class GradioClientAdapter(BaseInferenceClient):
    """Prediction client for a hosted Gradio Space, passing the upload as the `file` argument.

    queue_timeout_seconds bounds how long one attempt waits for the job to leave the
    upstream queue; once the Space is processing it, the wait extends up to
    processing_timeout_seconds.
    """

    def __init__(
        self,
        *,
        space: str,
        api_name: str,
        queue_timeout_seconds: float,
        processing_timeout_seconds: float,
        hf_token: str | None = None,
    ) -> None:
        self._space = space
        self._api_name = api_name
        self._queue_timeout_seconds = queue_timeout_seconds
        self._processing_timeout_seconds = processing_timeout_seconds
        self._hf_token = hf_token
        self._client: Client | None = None

    def _connect(self) -> Client:
        if self._client is None:
            try:
                self._client = Client(self._space, hf_token=self._hf_token, verbose=False)
            except (httpx.HTTPError, ValueError, OSError) as exc:
                raise UpstreamError(f"Inference service unavailable: {exc}") from exc
            logger.debug("Connected to Gradio space %s", self._space)
        return self._client

    def predict(self, file_path: str) -> Any:
        client = self._connect()
        job = client.submit(file=handle_file(file_path), api_name=self._api_name)

        try:
            try:
                return job.result(timeout=self._queue_timeout_seconds)
            except FutureTimeoutError:
                status = job.status()
                if status.code in _WAITING_CODES:
                    job.cancel()
                    return queued_status(rank=status.rank, queue_size=status.queue_size)

            try:
                return job.result(timeout=self._processing_timeout_seconds)
            except FutureTimeoutError:
                status = job.status()
                job.cancel()
                raise UpstreamError(
                    "Inference service did not answer within "
                    f"{self._queue_timeout_seconds + self._processing_timeout_seconds:g}s "
                    f"(status={status.code.name})"
                )
        except QueueError as exc:
            raise UpstreamQueued("Inference queue is full") from exc
        except AppError as exc:
            raise UpstreamError(str(exc) or "Inference service reported an error") from exc
