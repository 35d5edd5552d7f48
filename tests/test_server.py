from __future__ import annotations

import http.client
import json
import threading
from pathlib import Path
from urllib.error import URLError

import pytest

from color_king.app import build_app
from color_king.config import AppConfig
from color_king.errors import GenerationTimeout, InvalidCredential, ProviderMisconfigured, ValidationError
from color_king.server import WizardServer, status_for


@pytest.fixture
def server(tmp_path: Path, monkeypatch):
    def offline_urlopen(req, timeout=0):
        raise URLError("offline")

    monkeypatch.setattr("color_king.providers.http_utils.urlopen", offline_urlopen)
    app = build_app(AppConfig(state_dir=tmp_path), session_id="session-1")
    wizard = WizardServer(("127.0.0.1", 0), app)
    thread = threading.Thread(target=wizard.serve_forever, daemon=True)
    thread.start()
    yield wizard
    wizard.shutdown()
    wizard.server_close()


def _request(server: WizardServer, method: str, path: str, body: dict | None = None):
    conn = http.client.HTTPConnection("127.0.0.1", server.server_address[1], timeout=10)
    payload = json.dumps(body).encode("utf-8") if body is not None else None
    headers = {"Content-Type": "application/json"} if payload is not None else {}
    conn.request(method, path, body=payload, headers=headers)
    response = conn.getresponse()
    data = response.read()
    conn.close()
    if response.getheader("Content-Type", "").startswith("application/json"):
        return response.status, json.loads(data), response
    return response.status, data, response


def test_status_mapping() -> None:
    assert status_for(ValidationError("x")) == 400
    assert status_for(InvalidCredential("x")) == 401
    assert status_for(ProviderMisconfigured("x")) == 412
    assert status_for(GenerationTimeout("x")) == 504


def test_healthz_and_home(server: WizardServer) -> None:
    status, payload, _ = _request(server, "GET", "/healthz")
    assert status == 200
    assert payload["ok"] is True

    status, payload, _ = _request(server, "GET", "/")
    assert status == 200
    assert payload["view"] == "home"


def test_guarded_step_redirects_to_describe(server: WizardServer) -> None:
    status, payload, response = _request(server, "GET", "/choose-outline")
    assert status == 303
    assert response.getheader("Location") == "/describe"
    assert payload["redirect"] == "/describe"


def test_unknown_route_is_404(server: WizardServer) -> None:
    status, _, _ = _request(server, "GET", "/nowhere")
    assert status == 404
    status, _, _ = _request(server, "POST", "/nowhere", {})
    assert status == 404


def test_blank_description_is_400(server: WizardServer) -> None:
    status, payload, _ = _request(server, "POST", "/describe", {"description": "  "})
    assert status == 400
    assert payload["kind"] == "validation"
    assert payload["alert"] == "generic"


def test_full_mock_walkthrough(server: WizardServer, tmp_path: Path) -> None:
    status, payload, _ = _request(server, "POST", "/describe", {"description": "a cat in a crown"})
    assert status == 200
    assert payload["next"] == "/choose-drawing"
    assert len(payload["state"]["drawing_options"]) == 4

    status, payload, _ = _request(server, "POST", "/choose-drawing", {"drawing_id": "3"})
    assert payload["next"] == "/choose-outline"
    assert payload["state"]["selected_drawing"]["id"] == "3"

    status, payload, _ = _request(server, "POST", "/choose-outline", {"outline_id": "2"})
    assert payload["next"] == "/print-settings"

    status, payload, _ = _request(server, "POST", "/print-settings", {"copies": 11})
    assert status == 400

    status, payload, _ = _request(server, "POST", "/print-settings", {"copies": 2, "outline_color": "gray"})
    assert payload["next"] == "/preview"

    status, payload, _ = _request(server, "GET", "/preview")
    assert status == 200
    assert payload["settings"]["outline_color"] == "gray"

    status, data, response = _request(server, "GET", "/preview/sheet.png")
    assert status == 200
    assert response.getheader("Content-Type") == "image/png"
    assert data.startswith(b"\x89PNG")

    status, payload, _ = _request(server, "POST", "/print", {})
    assert status == 200
    assert payload["copies"] == 2
    assert Path(payload["path"]).parent == tmp_path / "prints"

    status, payload, _ = _request(server, "POST", "/reset", {})
    assert payload["next"] == "/describe"
    assert payload["state"]["drawing_options"] == []


def test_settings_update_never_echoes_credential(server: WizardServer, tmp_path: Path) -> None:
    status, payload, _ = _request(server, "POST", "/settings", {"credential": "r8-secret"})
    assert status == 200
    assert payload["provider_enabled"] is True
    assert payload["has_provider_credential"] is True
    assert "r8-secret" not in json.dumps(payload)

    status, payload, _ = _request(server, "POST", "/settings", {"enabled": False})
    assert payload["provider_enabled"] is False

    stored = json.loads((tmp_path / "local_storage.json").read_text(encoding="utf-8"))
    assert stored == {"provider_credential": "r8-secret", "provider_enabled": "false"}


def test_provider_network_failure_is_502(server: WizardServer) -> None:
    _request(server, "POST", "/settings", {"credential": "r8-key"})

    status, payload, _ = _request(server, "POST", "/describe", {"description": "a castle"})

    assert status == 502
    assert payload["kind"] == "network"
    assert payload["alert"] == "network_help"
    _, state, _ = _request(server, "GET", "/state")
    assert state["is_generating"] is False


def test_busy_generation_is_409(server: WizardServer) -> None:
    server.generation_lock.acquire()
    try:
        status, payload, _ = _request(server, "POST", "/describe", {"description": "a castle"})
    finally:
        server.generation_lock.release()
    assert status == 409
    assert payload["kind"] == "busy"


def test_reset_while_generating_is_409(server: WizardServer) -> None:
    _request(server, "POST", "/describe", {"description": "a castle"})
    server.generation_lock.acquire()
    try:
        status, payload, _ = _request(server, "POST", "/reset", {})
    finally:
        server.generation_lock.release()
    assert status == 409
    assert payload["kind"] == "busy"

    _, state, _ = _request(server, "GET", "/state")
    assert len(state["drawing_options"]) == 4


def test_print_settings_with_foreign_keys_is_400(server: WizardServer) -> None:
    _request(server, "POST", "/describe", {"description": "a cat"})
    _request(server, "POST", "/choose-drawing", {"drawing_id": "1"})
    _request(server, "POST", "/choose-outline", {"outline_id": "1"})

    for body in ({"store": 1}, {"self": 1}, {"copies": 2, "margins": "wide"}):
        status, payload, _ = _request(server, "POST", "/print-settings", body)
        assert status == 400
        assert payload["kind"] == "validation"

    _, state, _ = _request(server, "GET", "/state")
    assert state["print_settings"]["copies"] == 1


def test_unexpected_handler_error_is_500(server: WizardServer, monkeypatch) -> None:
    def broken_snapshot():
        raise RuntimeError("snapshot exploded")

    monkeypatch.setattr(server.app.store, "snapshot", broken_snapshot)

    status, payload, _ = _request(server, "GET", "/state")
    assert status == 500
    assert payload == {"error": "snapshot exploded", "kind": "internal"}

    status, payload, _ = _request(server, "POST", "/settings", {"enabled": False})
    assert status == 500
    assert payload["kind"] == "internal"


def test_cancel_without_generation(server: WizardServer) -> None:
    status, payload, _ = _request(server, "POST", "/cancel", {})
    assert status == 200
    assert payload == {"cancelled": False}


def test_functions_without_server_key_is_500(server: WizardServer) -> None:
    server.app.config.server_openai_api_key = None
    status, payload, _ = _request(server, "POST", "/functions/generate-images", {"prompt": "a fox", "count": 2})
    assert status == 500
    assert payload["kind"] == "provider_misconfigured"


def test_functions_missing_prompt_is_400(server: WizardServer) -> None:
    server.app.config.server_openai_api_key = "sk-server"
    status, payload, _ = _request(server, "POST", "/functions/generate-images", {"prompt": ""})
    assert status == 400
    assert payload["kind"] == "validation"


def test_invalid_json_body_is_400(server: WizardServer) -> None:
    conn = http.client.HTTPConnection("127.0.0.1", server.server_address[1], timeout=10)
    conn.request("POST", "/describe", body=b"{nope", headers={"Content-Type": "application/json"})
    response = conn.getresponse()
    response.read()
    conn.close()
    assert response.status == 400
