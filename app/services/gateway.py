from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal

from app.core.uploads import stored_upload
from app.services.exceptions import GatewayError, InvalidRequest, UpstreamError
from app.services.inference_client import BaseInferenceClient, is_queued_status

logger = logging.getLogger(__name__)

NO_RESULT_PAYLOAD = {"message": "No result returned"}


@dataclass(frozen=True)
class PollAttempt:
    number: int
    outcome: Literal["success", "queued"]
    payload: Any = None


@dataclass(frozen=True)
class PredictionOutcome:
    status: Literal["done", "queued"]
    attempts: int
    result: Any = None

    @property
    def is_queued(self) -> bool:
        return self.status == "queued"


class InferenceGateway:
    """Submit one upload to the inference service and poll while it reports "queued".

    Errors are raised as GatewayError subclasses. Running out of attempts while still
    queued is not an error: it comes back as a PredictionOutcome with status="queued".
    """

    def __init__(
        self,
        client: BaseInferenceClient,
        *,
        max_attempts: int = 12,
        retry_delay_seconds: float = 2.0,
        uploads_dir: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._client = client
        self._max_attempts = max_attempts
        self._retry_delay_seconds = retry_delay_seconds
        self._uploads_dir = uploads_dir
        self._sleep = sleep

    def submit(self, payload: bytes | None, filename: str) -> PredictionOutcome:
        if payload is None:
            raise InvalidRequest("No file uploaded")

        with stored_upload(payload, filename, self._uploads_dir) as path:
            logger.info("Submitting %s (%d bytes) for prediction", filename, len(payload))
            return self._poll(path)

    def _poll(self, path: str) -> PredictionOutcome:
        for number in range(1, self._max_attempts + 1):
            attempt = self._attempt(number, path)

            if attempt.outcome == "success":
                result = attempt.payload if attempt.payload is not None else dict(NO_RESULT_PAYLOAD)
                return PredictionOutcome(status="done", attempts=number, result=result)

            if number < self._max_attempts:
                logger.info(
                    "Prediction queued (attempt %d/%d), retrying in %.1fs",
                    number,
                    self._max_attempts,
                    self._retry_delay_seconds,
                )
                self._sleep(self._retry_delay_seconds)

        logger.warning("Prediction still queued after %d attempts", self._max_attempts)
        return PredictionOutcome(status="queued", attempts=self._max_attempts)

    def _attempt(self, number: int, path: str) -> PollAttempt:
        """Run one upstream call and fold both forms of the queued sentinel into one result."""
        try:
            payload = self._client.predict(path)
        except GatewayError:
            raise
        except Exception as exc:
            if is_queued_status(exc):
                return PollAttempt(number=number, outcome="queued")
            logger.exception("Upstream prediction failed on attempt %d", number)
            raise UpstreamError(str(exc) or exc.__class__.__name__) from exc

        if is_queued_status(payload):
            return PollAttempt(number=number, outcome="queued", payload=payload)
        return PollAttempt(number=number, outcome="success", payload=payload)
