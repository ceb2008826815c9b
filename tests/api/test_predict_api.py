from pathlib import Path
from typing import Any, Callable, Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_gateway, get_preview_limit
from app.main import app
from app.services.exceptions import UpstreamError
from app.services.gateway import InferenceGateway

QUEUED = {"type": "status", "queue": True}


@pytest.fixture()
def http(scripted_client: Callable, tmp_path: Path) -> Iterator[Callable[..., tuple[TestClient, Any]]]:
    """Return a factory: answers -> (TestClient, upstream client) with the gateway overridden."""

    def _make(
        *responses: Any,
        max_attempts: int = 12,
        raise_server_exceptions: bool = True,
    ) -> tuple[TestClient, Any]:
        upstream = scripted_client(*responses)
        gateway = InferenceGateway(
            upstream,
            max_attempts=max_attempts,
            retry_delay_seconds=0,
            uploads_dir=str(tmp_path),
            sleep=MagicMock(),
        )
        app.dependency_overrides[get_gateway] = lambda: gateway
        app.dependency_overrides[get_preview_limit] = lambda: 2
        return TestClient(app, raise_server_exceptions=raise_server_exceptions), upstream

    yield _make
    app.dependency_overrides.clear()


def _csv(name: str = "file") -> dict[str, tuple[str, bytes, str]]:
    return {name: ("windows.csv", b"t,gpu\n0,91\n", "text/csv")}


class TestPredict:
    def test_returns_upstream_json(self, http: Callable, rich_result: dict, tmp_path: Path) -> None:
        client, upstream = http(rich_result)

        res = client.post("/api/predict", files=_csv())

        assert res.status_code == 200
        assert res.json() == rich_result
        assert upstream.payloads == [b"t,gpu\n0,91\n"]
        assert list(tmp_path.iterdir()) == []

    def test_accepts_upload_alias(self, http: Callable) -> None:
        client, upstream = http({"classification": [1]})

        res = client.post("/api/predict", files=_csv("upload"))

        assert res.status_code == 200
        assert len(upstream.calls) == 1

    def test_queued_after_max_attempts(self, http: Callable) -> None:
        client, upstream = http(*([QUEUED] * 12))

        res = client.post("/api/predict", files=_csv())

        assert res.status_code == 202
        assert res.json() == {"queued": True, "message": "Prediction queued, try again later"}
        assert len(upstream.calls) == 12

    def test_missing_file_never_calls_upstream(self, http: Callable) -> None:
        client, upstream = http({"ok": True})

        res = client.post("/api/predict", data={"note": "no file here"})

        assert res.status_code == 400
        assert res.json() == {"error": "No file uploaded"}
        assert upstream.calls == []

    def test_empty_body(self, http: Callable) -> None:
        client, upstream = http({"ok": True})

        res = client.post("/api/predict")

        assert res.status_code == 400
        assert res.json() == {"error": "No file uploaded"}
        assert upstream.calls == []

    def test_upstream_error_message_passthrough(self, http: Callable, tmp_path: Path) -> None:
        client, _upstream = http(UpstreamError("Space returned 503"))

        res = client.post("/api/predict", files=_csv())

        assert res.status_code == 500
        assert res.json() == {"error": "Space returned 503"}
        assert list(tmp_path.iterdir()) == []

    def test_unexpected_exception_is_500(self, http: Callable) -> None:
        client, _upstream = http(ValueError("unexpected payload"))

        res = client.post("/api/predict", files=_csv())

        assert res.status_code == 500
        assert res.json() == {"error": "unexpected payload"}

    def test_unserializable_result_still_uses_error_body(self, http: Callable, tmp_path: Path) -> None:
        client, _upstream = http({"score": float("nan")}, raise_server_exceptions=False)

        res = client.post("/api/predict", files=_csv())

        assert res.status_code == 500
        assert "JSON compliant" in res.json()["error"]
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods_not_allowed(self, http: Callable, method: str) -> None:
        client, upstream = http({"ok": True})

        res = getattr(client, method)("/api/predict")

        assert res.status_code == 405
        assert res.json() == {"error": "Method not allowed"}
        assert upstream.calls == []


class TestAnalyze:
    def test_returns_view_model(self, http: Callable, rich_result: dict) -> None:
        client, _upstream = http(rich_result)

        res = client.post("/api/analyze", files=_csv())

        body = res.json()
        assert res.status_code == 200
        assert body["shape"] == "rich"
        assert body["class_distribution"]["labels"] == ["0", "1"]
        assert body["class_distribution"]["values"] == [5, 3]
        assert len(body["predictions_preview"]) == 2
        assert body["preview_total"] == 5

    def test_full_preview(self, http: Callable, rich_result: dict) -> None:
        client, _upstream = http(rich_result)

        res = client.post("/api/analyze?full=true", files=_csv())

        assert len(res.json()["predictions_preview"]) == 5

    def test_queued(self, http: Callable) -> None:
        client, _upstream = http(QUEUED, max_attempts=1)

        res = client.post("/api/analyze", files=_csv())

        assert res.status_code == 202
        assert res.json()["queued"] is True


class TestViewModel:
    def test_legacy_body(self, http: Callable, legacy_result: dict) -> None:
        client, upstream = http()

        res = client.post("/api/view-model", json=legacy_result)

        body = res.json()
        assert res.status_code == 200
        assert body["shape"] == "legacy"
        assert body["classification"]["percentages"] == ["33.3", "16.7", "50.0"]
        assert upstream.calls == []

    def test_array_body_uses_first_element(self, http: Callable, rich_result: dict) -> None:
        client, _upstream = http()

        res = client.post("/api/view-model", json=[rich_result])

        assert res.json()["total_windows"] == 5


class TestHealth:
    def test_health(self) -> None:
        res = TestClient(app).get("/health")
        assert res.json() == {"status": "ok"}
