# src/task_companion/llm/client.py

from __future__ import annotations

import io
import logging
import os
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..config import Settings
from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)

# A model that returned 404 is skipped for this long.
_BAD_MODEL_COOLDOWN_SECONDS = 3600.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        return default


def _timeouts_from_env() -> dict[str, float]:
    """
    Timeouts are configurable via env so a slow model can't hang a request forever.

    Defaults:
    - connect timeout: 5s
    - read timeout: 30s
    """
    return {
        "read": _env_float("TASKS_LLM_READ_TIMEOUT_SECONDS", 30.0),
        "connect": _env_float("TASKS_LLM_CONNECT_TIMEOUT_SECONDS", 5.0),
    }


def _make_timeout_obj(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def build_openai_client(settings: Settings) -> OpenAI:
    """
    Create the OpenAI-compatible client once, at startup.

    Automatic retries are disabled: the pipeline does not retry, and model
    fallback is handled in OpenAILLMClient.complete().
    """
    api_key = settings.openai_api_key
    base_url = settings.llm_base_url or ""

    if not api_key or not str(api_key).strip():
        raise RuntimeError("LLM API key is not set. Set OPENAI_API_KEY in your .env.")

    if not base_url.strip():
        raise RuntimeError("LLM base URL is not set. Set TASKS_LLM_BASE_URL in your .env.")

    t = _timeouts_from_env()
    return OpenAI(
        base_url=str(base_url),
        api_key=str(api_key),
        timeout=_make_timeout_obj(connect_s=t["connect"], read_s=t["read"]),
        max_retries=0,
    )


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set OPENAI_API_KEY in .env (see .env.example)."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set TASKS_LLM_MODELS in .env (see .env.example)."
    if "LLM base URL is not set" in msg:
        return "LLM is not configured (missing base URL). Set TASKS_LLM_BASE_URL in .env (see .env.example)."
    return msg


def _message_content(completion: Any) -> str:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return ""
    return content or ""


class OpenAILLMClient:
    """
    LLMClient backed by an OpenAI-compatible chat completions endpoint.

    Behavior:
    - Tries models in the order from settings (TASKS_LLM_MODELS).
    - 404 (model not available) -> park the model for an hour, try next.
    - Rate limit / network issues / empty reply -> try next.
    - Auth issues -> fail fast (no retries across models).
    """

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client if client is not None else build_openai_client(settings)
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        models = [m.strip() for m in (self._settings.llm_models or []) if m and m.strip()]
        if not models:
            raise RuntimeError("LLM model list is empty. Set TASKS_LLM_MODELS in your .env.")

        headers = dict(self._settings.extra_headers or {})
        last_error: Exception | None = None
        now = time.monotonic()

        for model in models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()
            try:
                completion = self._client.chat.completions.create(
                    model=model,
                    messages=[{"role": "system", "content": system_prompt}, *messages],
                    temperature=self._settings.llm_temperature,
                    max_tokens=self._settings.llm_max_tokens,
                    extra_headers=headers or None,
                )
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (OPENAI_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + _BAD_MODEL_COOLDOWN_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            content = _message_content(completion)
            if content.strip():
                logger.info("LLM: completed with model=%s (%.2fs)", model, time.monotonic() - t0)
                return content

            last_error = RuntimeError(f"Model returned no content: {model}")
            logger.info("LLM: empty reply from model=%s, trying next", model)

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")


class OpenAISpeechToText:
    """SpeechToText backed by the OpenAI audio transcription endpoint (whisper)."""

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        self._model = settings.stt_model
        self._client = client if client is not None else build_openai_client(settings)

    def transcribe(self, data: bytes, *, filename: str = "audio.webm") -> str:
        buf = io.BytesIO(data)
        buf.name = filename  # the SDK infers the audio format from the name
        t0 = time.monotonic()
        result = self._client.audio.transcriptions.create(model=self._model, file=buf)
        text = getattr(result, "text", "") or ""
        logger.info(
            "STT: transcribed %d bytes with model=%s (%.2fs)",
            len(data),
            self._model,
            time.monotonic() - t0,
        )
        return text
