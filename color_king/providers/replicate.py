"""Replicate provider (asynchronous prediction + polling)."""

from __future__ import annotations

import threading
from typing import Any, Mapping

from ..errors import EmptyResult, GenerationTimeout, InvalidCredential, NetworkError, ProviderError
from .base import GenerationParams, ensure_reachable
from .http_utils import check_cancelled, get_json, post_json, wait_or_cancel
from .prompts import outline_prompt


SUCCEEDED = "succeeded"
FAILURE_STATUSES = {"failed", "canceled"}
DEFAULT_NEGATIVE_PROMPT = "color, shading, realistic, detailed, complex"
_LABEL = "Replicate API"


class ReplicateProvider:
    name = "replicate"
    requires_credential = True

    def __init__(
        self,
        api_base: str = "https://api.replicate.com/v1",
        version: str = "",
        *,
        poll_interval_s: float = 10.0,
        max_poll_attempts: int = 30,
        max_network_retries: int = 3,
        timeout_s: float = 60.0,
        direct_from_browser: bool = False,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.version = version
        self.poll_interval_s = poll_interval_s
        self.max_poll_attempts = max_poll_attempts
        self.max_network_retries = max_network_retries
        self.timeout_s = timeout_s
        self.direct_from_browser = direct_from_browser

    def submit_and_await(
        self,
        params: GenerationParams,
        credential: str | None,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        model_input = {
            "prompt": f"Line art drawing for coloring page of: {params.prompt}",
            "negative_prompt": params.negative_prompt or DEFAULT_NEGATIVE_PROMPT,
            "num_outputs": params.num_outputs or 4,
            "guidance_scale": params.guidance_scale or 7,
        }
        return self._run_prediction(model_input, credential, cancel_event)

    def convert_to_outline(
        self,
        image_url: str,
        style: str,
        credential: str | None,
        count: int = 3,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        model_input = {
            "image": image_url,
            "prompt": outline_prompt(style),
            "negative_prompt": DEFAULT_NEGATIVE_PROMPT,
            "num_outputs": count,
        }
        return self._run_prediction(model_input, credential, cancel_event)

    def _run_prediction(
        self,
        model_input: Mapping[str, Any],
        credential: str | None,
        cancel_event: threading.Event | None,
    ) -> list[str]:
        api_key = (credential or "").strip()
        if not api_key:
            raise InvalidCredential("Replicate API key is missing or invalid.")
        ensure_reachable(_LABEL, self.direct_from_browser)
        check_cancelled(cancel_event)

        headers = _headers(api_key)
        payload = {"version": self.version, "input": dict(model_input)}
        _, prediction = post_json(
            f"{self.api_base}/predictions", payload, headers, self.timeout_s, label=_LABEL
        )
        status = str(prediction.get("status") or "").lower()
        if status == SUCCEEDED and prediction.get("output"):
            return _output_urls(prediction)
        if status in FAILURE_STATUSES:
            raise ProviderError(_failure_message(prediction))
        prediction_id = prediction.get("id")
        if not prediction_id:
            raise ProviderError(f"Replicate response missing prediction id: {prediction}")
        return self._poll(str(prediction_id), headers, cancel_event)

    def _poll(
        self,
        prediction_id: str,
        headers: Mapping[str, str],
        cancel_event: threading.Event | None,
    ) -> list[str]:
        url = f"{self.api_base}/predictions/{prediction_id}"
        attempts = 0
        network_failures = 0
        while attempts < self.max_poll_attempts:
            check_cancelled(cancel_event)
            try:
                _, prediction = get_json(url, headers, self.timeout_s, label=_LABEL)
            except NetworkError as exc:
                network_failures += 1
                if network_failures > self.max_network_retries:
                    raise NetworkError(
                        "Network error: unable to connect to Replicate API while checking generation status."
                    ) from exc
                wait_or_cancel(cancel_event, self.poll_interval_s)
                continue
            network_failures = 0
            attempts += 1

            status = str(prediction.get("status") or "").lower()
            if status == SUCCEEDED:
                urls = _output_urls(prediction)
                if not urls:
                    raise EmptyResult("Replicate prediction succeeded without any output.")
                return urls
            if status in FAILURE_STATUSES:
                raise ProviderError(_failure_message(prediction))
            if attempts < self.max_poll_attempts:
                wait_or_cancel(cancel_event, self.poll_interval_s)

        raise GenerationTimeout(
            "Timeout waiting for coloring page generation after "
            f"{self.max_poll_attempts} status checks."
        )


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Token {api_key}",
        "Content-Type": "application/json",
    }


def _output_urls(prediction: Mapping[str, Any]) -> list[str]:
    output = prediction.get("output")
    if isinstance(output, str):
        return [output] if output else []
    if isinstance(output, list):
        return [str(item) for item in output if isinstance(item, str) and item]
    return []


def _failure_message(prediction: Mapping[str, Any]) -> str:
    error = prediction.get("error")
    if error:
        return str(error)
    return "Generation failed or was canceled."
