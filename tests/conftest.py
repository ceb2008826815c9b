import os
from typing import Any, Callable

import pytest

from app.services.inference_client import BaseInferenceClient


class ScriptedClient(BaseInferenceClient):
    """Inference client that replays a fixed list of answers (exceptions are raised)."""

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.calls: list[str] = []
        self.file_existed: list[bool] = []
        self.payloads: list[bytes] = []

    def predict(self, file_path: str) -> Any:
        self.calls.append(file_path)
        self.file_existed.append(os.path.exists(file_path))
        if os.path.exists(file_path):
            with open(file_path, "rb") as f:
                self.payloads.append(f.read())

        response = self._responses.pop(0) if self._responses else None
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture()
def scripted_client() -> Callable[..., ScriptedClient]:
    def _make(*responses: Any) -> ScriptedClient:
        return ScriptedClient(list(responses))

    return _make


@pytest.fixture()
def rich_result() -> dict[str, Any]:
    return {
        "summary": {
            "total_windows": 5,
            "dominant_workload_type": "Compute-bound",
            "class_distribution": {"0": 5, "1": 3},
        },
        "cluster_profiles": {
            "0": {"members": 4, "label": "steady"},
            "1": {"members": 1, "label": "bursty"},
        },
        "predictions_preview": [
            {"window_id": 0, "class_id": 0, "label": "Compute-bound", "confidence": 0.9, "cluster_id": 0},
            {"window_id": 1, "class_id": 0, "label": "Compute-bound", "confidence": 0.85, "cluster_id": 0},
            {"window_id": 2, "class_id": 1, "label": "Memory-bound", "confidence": 0.7, "cluster_id": 0},
            {"window_id": 3, "class_id": 1, "label": "Memory-bound", "confidence": 0.5, "cluster_id": 1},
            {"window_id": 4, "class_id": 0, "label": "Compute-bound", "confidence": 0.2, "cluster_id": 0},
        ],
        "recommendation": {"action": "Scale up GPU nodes", "reason": "Compute-bound windows dominate"},
        "message": "Workload characterized successfully",
    }


@pytest.fixture()
def legacy_result() -> dict[str, Any]:
    return {"classification": [2, 0, 1, 0, 2, 2], "clusters": [1, 1, 0]}


@pytest.fixture()
def csv_bytes() -> bytes:
    return b"timestamp,gpu_util,mem_util\n0,91.5,40.2\n1,88.0,41.7\n"
