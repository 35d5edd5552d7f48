from __future__ import annotations

import io
import json
import threading
from urllib.error import HTTPError, URLError

import pytest

from color_king.errors import (
    BrowserRestricted,
    GenerationCancelled,
    GenerationTimeout,
    InvalidCredential,
    NetworkError,
    ProviderError,
)
from color_king.providers.base import GenerationParams
from color_king.providers.replicate import ReplicateProvider


class DummyResponse:
    def __init__(self, payload: dict, status: int = 200) -> None:
        self._payload = payload
        self.status = status

    def read(self) -> bytes:
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self) -> "DummyResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


def _provider(**kwargs) -> ReplicateProvider:
    kwargs.setdefault("poll_interval_s", 0)
    return ReplicateProvider("https://replicate.test/v1", "line-art-version", **kwargs)


def _install(monkeypatch, poll_payloads: list, create_payload: dict | None = None) -> list:
    calls: list = []
    queue = list(poll_payloads)

    def fake_urlopen(req, timeout=0):
        calls.append(req)
        if req.get_method() == "POST":
            return DummyResponse(create_payload or {"id": "pred-1", "status": "starting"}, status=201)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return DummyResponse(item)

    monkeypatch.setattr("color_king.providers.http_utils.urlopen", fake_urlopen)
    return calls


def test_replicate_submits_line_art_prediction(monkeypatch) -> None:
    calls = _install(monkeypatch, [{"status": "succeeded", "output": ["https://img.test/1.png"]}])

    urls = _provider().submit_and_await(GenerationParams(prompt="a cat in a crown"), "r8-key")

    assert urls == ["https://img.test/1.png"]
    create = calls[0]
    assert create.full_url == "https://replicate.test/v1/predictions"
    assert create.get_header("Authorization") == "Token r8-key"
    body = json.loads(create.data)
    assert body["version"] == "line-art-version"
    assert body["input"]["prompt"] == "Line art drawing for coloring page of: a cat in a crown"
    assert body["input"]["num_outputs"] == 4
    assert body["input"]["guidance_scale"] == 7.0
    assert "color" in body["input"]["negative_prompt"]
    assert calls[1].full_url == "https://replicate.test/v1/predictions/pred-1"


def test_replicate_resolves_on_final_poll(monkeypatch) -> None:
    payloads = [{"status": "processing"}] * 29 + [
        {"status": "succeeded", "output": ["https://img.test/a.png", "https://img.test/b.png"]}
    ]
    calls = _install(monkeypatch, payloads)

    urls = _provider().submit_and_await(GenerationParams(prompt="castle"), "r8-key")

    assert urls == ["https://img.test/a.png", "https://img.test/b.png"]
    assert len([req for req in calls if req.get_method() == "GET"]) == 30


def test_replicate_times_out_after_max_polls(monkeypatch) -> None:
    calls = _install(monkeypatch, [{"status": "processing"}] * 31)

    with pytest.raises(GenerationTimeout):
        _provider().submit_and_await(GenerationParams(prompt="castle"), "r8-key")

    assert len([req for req in calls if req.get_method() == "GET"]) == 30


def test_replicate_failed_prediction_raises_provider_error(monkeypatch) -> None:
    _install(monkeypatch, [{"status": "processing"}, {"status": "failed", "error": "NSFW content detected"}])

    with pytest.raises(ProviderError, match="NSFW content detected"):
        _provider().submit_and_await(GenerationParams(prompt="castle"), "r8-key")


def test_replicate_immediate_success_skips_polling(monkeypatch) -> None:
    calls = _install(
        monkeypatch,
        [],
        create_payload={"id": "pred-2", "status": "succeeded", "output": "https://img.test/only.png"},
    )

    urls = _provider().submit_and_await(GenerationParams(prompt="robot"), "r8-key")

    assert urls == ["https://img.test/only.png"]
    assert len(calls) == 1


def test_replicate_retries_transient_network_errors(monkeypatch) -> None:
    payloads = [URLError("reset"), URLError("reset"), URLError("reset")] + [
        {"status": "succeeded", "output": ["https://img.test/1.png"]}
    ]
    _install(monkeypatch, payloads)

    urls = _provider(max_poll_attempts=1).submit_and_await(GenerationParams(prompt="robot"), "r8-key")

    assert urls == ["https://img.test/1.png"]


def test_replicate_gives_up_after_repeated_network_errors(monkeypatch) -> None:
    _install(monkeypatch, [URLError("down")] * 4)

    with pytest.raises(NetworkError, match="checking generation status"):
        _provider().submit_and_await(GenerationParams(prompt="robot"), "r8-key")


def test_replicate_unauthorized_is_invalid_credential(monkeypatch) -> None:
    def fake_urlopen(req, timeout=0):
        raise HTTPError(
            req.full_url,
            401,
            "Unauthorized",
            hdrs=None,
            fp=io.BytesIO(b'{"detail": "Invalid token."}'),
        )

    monkeypatch.setattr("color_king.providers.http_utils.urlopen", fake_urlopen)

    with pytest.raises(InvalidCredential, match="Invalid token"):
        _provider().submit_and_await(GenerationParams(prompt="robot"), "bad-key")


def test_replicate_requires_credential_before_any_request(monkeypatch) -> None:
    calls = _install(monkeypatch, [])

    with pytest.raises(InvalidCredential):
        _provider().submit_and_await(GenerationParams(prompt="robot"), "  ")

    assert calls == []


def test_replicate_direct_from_browser_is_restricted(monkeypatch) -> None:
    calls = _install(monkeypatch, [])

    with pytest.raises(BrowserRestricted):
        _provider(direct_from_browser=True).submit_and_await(GenerationParams(prompt="robot"), "r8-key")

    assert calls == []


def test_replicate_cancel_stops_polling(monkeypatch) -> None:
    cancel_event = threading.Event()
    calls: list = []

    def fake_urlopen(req, timeout=0):
        calls.append(req)
        if req.get_method() == "POST":
            return DummyResponse({"id": "pred-3", "status": "starting"})
        cancel_event.set()
        return DummyResponse({"status": "processing"})

    monkeypatch.setattr("color_king.providers.http_utils.urlopen", fake_urlopen)

    with pytest.raises(GenerationCancelled):
        _provider().submit_and_await(GenerationParams(prompt="robot"), "r8-key", cancel_event=cancel_event)

    assert len(calls) == 2


def test_replicate_outline_conversion_sends_image_and_style(monkeypatch) -> None:
    calls = _install(monkeypatch, [{"status": "succeeded", "output": ["https://img.test/o1.png"]}])

    urls = _provider().convert_to_outline("https://img.test/drawing.png", "detailed", "r8-key", count=3)

    assert urls == ["https://img.test/o1.png"]
    body = json.loads(calls[0].data)
    assert body["input"]["image"] == "https://img.test/drawing.png"
    assert body["input"]["num_outputs"] == 3
    assert "detailed black and white coloring page" in body["input"]["prompt"]
