"""Wizard HTTP surface (stdlib only).

Endpoints:
  GET  /healthz
  GET  /                        landing view
  GET  /<step>                  step view, or 303 to /describe when its guard fails
  GET  /state                   session snapshot
  GET  /preview/sheet.png       rendered print sheet
  POST /describe                {description}
  POST /choose-drawing          {drawing_id, style?}
  POST /choose-outline          {outline_id}
  POST /print-settings          {page_size?, outline_thickness?, outline_color?, copies?}
  POST /print                   write the print PDF
  POST /settings                {credential?, enabled?, clear?}
  POST /reset
  POST /cancel
  POST /functions/generate-images      {prompt, count}
  POST /functions/convert-to-outline   {imageUrl, style}
"""

from __future__ import annotations

import json
import sys
import threading
import time
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import urlparse

from . import functions
from .app import AppContext
from .errors import (
    ColorKingError,
    EmptyResult,
    GenerationCancelled,
    GenerationTimeout,
    InvalidCredential,
    NetworkError,
    ProviderError,
    ProviderMisconfigured,
    ValidationError,
)
from .print_sheet import sheet_png_bytes
from .steps import Step, step_from_route
from .views import (
    Redirect,
    alert_for,
    back_to_start,
    build_print_sheet,
    choose_drawing,
    choose_outline,
    home_view,
    print_selected,
    render_step,
    submit_description,
    submit_print_settings,
)


_STATUS_BY_ERROR: tuple[tuple[type[ColorKingError], HTTPStatus], ...] = (
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (InvalidCredential, HTTPStatus.UNAUTHORIZED),
    (ProviderMisconfigured, HTTPStatus.PRECONDITION_FAILED),
    (GenerationTimeout, HTTPStatus.GATEWAY_TIMEOUT),
    (GenerationCancelled, HTTPStatus.CONFLICT),
    (NetworkError, HTTPStatus.BAD_GATEWAY),
    (EmptyResult, HTTPStatus.BAD_GATEWAY),
    (ProviderError, HTTPStatus.BAD_GATEWAY),
)


def status_for(exc: ColorKingError) -> HTTPStatus:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


class WizardServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], app: AppContext) -> None:
        super().__init__(address, _Handler)
        self.app = app
        self.generation_lock = threading.Lock()


class _Handler(BaseHTTPRequestHandler):
    server_version = "color-king/0"
    server: WizardServer

    def _send_json(self, status: int, payload: Any, headers: dict[str, str] | None = None) -> None:
        body = (json.dumps(payload, indent=2) + "\n").encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "authorization, content-type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        if headers:
            for k, v in headers.items():
                self.send_header(k, v)
        self.end_headers()
        self.wfile.write(body)

    def _send_bytes(self, status: int, data: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _redirect(self, step: Step) -> None:
        self._send_json(HTTPStatus.SEE_OTHER, {"redirect": step.route}, headers={"Location": step.route})

    def _navigate(self, step: Step) -> None:
        self._send_json(HTTPStatus.OK, {"next": step.route, "state": self.server.app.store.snapshot()})

    def _send_error_payload(self, exc: ColorKingError) -> None:
        self._send_json(status_for(exc), {"error": str(exc), "kind": exc.kind, "alert": alert_for(exc)})

    def _send_internal_error(self, exc: Exception) -> None:
        self.log_error("unhandled %s: %s", type(exc).__name__, exc)
        self._send_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": str(exc) or type(exc).__name__, "kind": "internal"})

    def _read_json_body(self) -> dict[str, Any] | None:
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            return None
        if length <= 0:
            return {}
        raw = self.rfile.read(length)
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return None
        return payload if isinstance(payload, dict) else None

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002 (BaseHTTPRequestHandler API)
        sys.stderr.write(
            json.dumps({"ts": int(time.time()), "client": self.address_string(), "request": format % args}) + "\n"
        )

    def do_OPTIONS(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler API)
        self.send_response(HTTPStatus.NO_CONTENT)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "authorization, content-type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.end_headers()

    def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler API)
        path = urlparse(self.path).path.rstrip("/") or "/"
        try:
            self._route_get(path)
        except ColorKingError as exc:
            self._send_error_payload(exc)
        except Exception as exc:
            self._send_internal_error(exc)

    def _route_get(self, path: str) -> None:
        store = self.server.app.store
        if path == "/healthz":
            self._send_json(HTTPStatus.OK, {"ok": True, "ts": int(time.time())})
            return
        if path == "/":
            self._send_json(HTTPStatus.OK, home_view(store))
            return
        if path == "/state":
            self._send_json(HTTPStatus.OK, store.snapshot())
            return
        if path == "/preview/sheet.png":
            if not store.can_enter(Step.PREVIEW):
                self._redirect(Step.DESCRIBE)
                return
            page = build_print_sheet(store)
            self._send_bytes(HTTPStatus.OK, sheet_png_bytes(page), "image/png")
            return

        step = step_from_route(path)
        if step is None:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "not found"})
            return
        result = render_step(store, step)
        if isinstance(result, Redirect):
            self._redirect(result.step)
            return
        self._send_json(HTTPStatus.OK, result)

    def do_POST(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler API)
        path = urlparse(self.path).path.rstrip("/")
        handler = _POST_ROUTES.get(path)
        if handler is None:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "not found"})
            return
        req = self._read_json_body()
        if req is None:
            self._send_json(HTTPStatus.BAD_REQUEST, {"error": "invalid json"})
            return
        try:
            handler(self, req)
        except ColorKingError as exc:
            self._send_error_payload(exc)
        except Exception as exc:
            self._send_internal_error(exc)

    # POST handlers

    def _send_busy(self) -> None:
        self._send_json(
            HTTPStatus.CONFLICT,
            {"error": "A generation is already in progress.", "kind": "busy", "alert": "generic"},
        )

    def _generate(self, action: Callable[[], Step]) -> None:
        lock = self.server.generation_lock
        if not lock.acquire(blocking=False):
            self._send_busy()
            return
        try:
            next_step = action()
        finally:
            lock.release()
        self._navigate(next_step)

    def _post_describe(self, req: dict[str, Any]) -> None:
        store = self.server.app.store
        description = str(req.get("description") or "")
        self._generate(lambda: submit_description(store, description))

    def _post_choose_drawing(self, req: dict[str, Any]) -> None:
        store = self.server.app.store
        drawing_id = str(req.get("drawing_id") or "")
        style = str(req.get("style") or "simple")
        self._generate(lambda: choose_drawing(store, drawing_id, style))

    def _post_choose_outline(self, req: dict[str, Any]) -> None:
        self._navigate(choose_outline(self.server.app.store, str(req.get("outline_id") or "")))

    def _post_print_settings(self, req: dict[str, Any]) -> None:
        self._navigate(submit_print_settings(self.server.app.store, req))

    def _post_print(self, req: dict[str, Any]) -> None:
        app = self.server.app
        if not app.store.can_enter(Step.PREVIEW):
            self._redirect(Step.DESCRIBE)
            return
        path = print_selected(app.store, app.config.print_dir)
        self._send_json(HTTPStatus.OK, {"path": str(path), "copies": app.store.session.print_settings.copies})

    def _post_settings(self, req: dict[str, Any]) -> None:
        store = self.server.app.store
        if req.get("clear"):
            store.clear_provider_credential()
        elif "credential" in req:
            store.save_provider_settings(str(req.get("credential") or ""))
        if "enabled" in req:
            store.set_provider_enabled(bool(req.get("enabled")))
        self._send_json(HTTPStatus.OK, store.snapshot())

    def _post_reset(self, req: dict[str, Any]) -> None:
        lock = self.server.generation_lock
        if not lock.acquire(blocking=False):
            self._send_busy()
            return
        try:
            next_step = back_to_start(self.server.app.store)
        finally:
            lock.release()
        self._navigate(next_step)

    def _post_cancel(self, req: dict[str, Any]) -> None:
        cancelled = self.server.app.store.cancel_generation()
        self._send_json(HTTPStatus.OK, {"cancelled": cancelled})

    def _run_function(self, call: Callable[[], dict[str, Any]]) -> None:
        try:
            payload = call()
        except ProviderMisconfigured as exc:
            # Missing server key.
            self._send_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": str(exc), "kind": exc.kind})
            return
        self._send_json(HTTPStatus.OK, payload)

    def _post_generate_images(self, req: dict[str, Any]) -> None:
        app = self.server.app
        try:
            count = int(req.get("count") or 4)
        except (TypeError, ValueError):
            count = 4
        prompt = str(req.get("prompt") or "")
        self._run_function(
            lambda: functions.generate_images(app.function_provider, app.config.server_openai_api_key, prompt, count)
        )

    def _post_convert_to_outline(self, req: dict[str, Any]) -> None:
        app = self.server.app
        image_url = str(req.get("imageUrl") or "")
        style = str(req.get("style") or "simple")
        self._run_function(
            lambda: functions.convert_to_outline(
                app.function_provider, app.config.server_openai_api_key, image_url, style
            )
        )


_POST_ROUTES: dict[str, Callable[[_Handler, dict[str, Any]], None]] = {
    Step.DESCRIBE.route: _Handler._post_describe,
    Step.CHOOSE_DRAWING.route: _Handler._post_choose_drawing,
    Step.CHOOSE_OUTLINE.route: _Handler._post_choose_outline,
    Step.PRINT_SETTINGS.route: _Handler._post_print_settings,
    "/print": _Handler._post_print,
    "/settings": _Handler._post_settings,
    "/reset": _Handler._post_reset,
    "/cancel": _Handler._post_cancel,
    "/functions/generate-images": _Handler._post_generate_images,
    "/functions/convert-to-outline": _Handler._post_convert_to_outline,
}


def serve(app: AppContext, host: str = "127.0.0.1", port: int = 8080) -> None:
    server = WizardServer((host, port), app)
    sys.stderr.write(f"Color King listening on http://{host}:{port}\n")
    sys.stderr.write(f"State dir: {app.config.state_dir}\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
