from __future__ import annotations  # LLM request gateway module

import logging
import os
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from config import LlmRoute
from interview_session.errors import GenerationError, GenerationErrorKind


logger = logging.getLogger(__name__)  # Module logger setup

# Rate limits are surfaced at once; an immediate resend would hit the same limit.
_RETRYABLE = (GenerationErrorKind.SERVER,)


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(GenerationError):  # Base gateway error
    pass


def complete(
    prompt: str,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:  # Send a single-prompt completion and return the raw generated text
    api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if cfg.api_key_env and not api_key:
        logger.error("LLM credentials missing env=%s", cfg.api_key_env)
        raise LlmGatewayError(GenerationErrorKind.CREDENTIALS, "API key not configured")
    payload: Dict[str, Any] = {
        "model": cfg.model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": cfg.temperature,
        "max_tokens": cfg.max_tokens,
    }
    if options:
        payload.update(options)
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    attempts = cfg.max_retries + 1
    preview = _preview(prompt)
    logger.info("LLM request start route=%s model=%s attempts=%d preview=%s", cfg.name, cfg.model, attempts, preview)
    last_error: Optional[LlmGatewayError] = None
    for attempt in range(attempts):
        logger.info(
            "LLM request send route=%s model=%s attempt=%d/%d",
            cfg.name,
            cfg.model,
            attempt + 1,
            attempts,
        )
        try:
            response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise LlmGatewayError(GenerationErrorKind.TRANSPORT) from exc
        try:
            if response.status_code >= 400:
                status_error = GenerationError.from_status(response.status_code)
                logger.error("LLM error status: %s kind=%s", response.status_code, status_error.kind.value)
                last_error = LlmGatewayError(status_error.kind, status_error.message)
                if status_error.kind in _RETRYABLE:
                    continue
                raise last_error
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON payload from LLM: %s", exc)
                raise LlmGatewayError(GenerationErrorKind.SERVER, "LLM payload was not JSON") from exc
            content = _extract_content(data)
            logger.info("LLM request done route=%s model=%s attempt=%d", cfg.name, cfg.model, attempt + 1)
            return content
        finally:
            _close_safely(close_cb)
    raise last_error or LlmGatewayError(GenerationErrorKind.TRANSPORT)


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, timeout=timeout)
        return response, None
    import httpx

    http_client = httpx.Client(timeout=timeout)
    response = http_client.post(url, json=payload, headers=headers)
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _preview(prompt: str) -> str:  # Build preview string for logging
    for line in prompt.splitlines():
        text = line.strip()
        if text:
            return text[:117] + "..." if len(text) > 120 else text
    return ""


def _extract_content(data: Any) -> str:  # Extract generated text from chat or inference payloads
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        results = data.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            generated = results[0].get("generated_text")
            if isinstance(generated, str):
                return generated
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError(GenerationErrorKind.SERVER, "LLM response missing content")
