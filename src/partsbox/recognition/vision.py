"""Vision API clients that turn image bytes into the model's free-text answer."""

from __future__ import annotations

import base64
import time
from typing import Any, Dict, Optional

import httpx
import requests
from openai import APIConnectionError, APIError, APIStatusError, OpenAI

from ..config import BACKEND_OPENAI, BACKEND_SIMULATED, AppConfig
from ..errors import EmptyResponseFailure, NetworkFailure, ResponseDecodeFailure
from ..logging import get_logger
from .prompts import RECOGNITION_PROMPT, simulated_answer


LOG = get_logger("recognition-vision")

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1/models/{model}:generateContent"
IMAGE_MIME = "image/jpeg"


class VisionClient:
    def recognize(self, image_bytes: bytes) -> str:
        """Return the model's answer for the image.

        Raises NetworkFailure, EmptyResponseFailure or ResponseDecodeFailure.
        """
        raise NotImplementedError


def _first_text(body: Any) -> Optional[str]:
    """First non-empty text part across all candidates.

    Raises ResponseDecodeFailure if the envelope is not a candidates list.
    """
    if not isinstance(body, dict) or not isinstance(body.get("candidates"), list):
        raise ResponseDecodeFailure("Gemini API 回應格式不符合預期。")
    for candidate in body["candidates"]:
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            continue
        for part in parts:
            text = part.get("text") if isinstance(part, dict) else None
            if isinstance(text, str) and text.strip():
                return text.strip()
    return None


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
    return None


class GeminiVisionClient(VisionClient):
    """Calls Gemini generateContent with the prompt and an inline JPEG."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash",
        timeout: int = 60,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.url = GEMINI_ENDPOINT.format(model=model)
        self._http = http or requests.Session()

    def build_payload(self, image_bytes: bytes) -> Dict[str, Any]:
        b64 = base64.b64encode(image_bytes).decode("ascii")
        return {
            "contents": [
                {
                    "parts": [
                        {"text": RECOGNITION_PROMPT},
                        {"inline_data": {"mime_type": IMAGE_MIME, "data": b64}},
                    ]
                }
            ]
        }

    def recognize(self, image_bytes: bytes) -> str:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        LOG.info("Calling Gemini model '%s' (%d image bytes)", self.model, len(image_bytes))
        t0 = time.perf_counter()
        try:
            resp = self._http.post(
                self.url,
                headers=headers,
                json=self.build_payload(image_bytes),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            LOG.error("Gemini request failed: %s", exc)
            raise NetworkFailure(str(exc)) from exc

        if not resp.content:
            LOG.error("Gemini HTTP %s with empty body", resp.status_code)
            raise EmptyResponseFailure("未收到 API 回應資料。")
        try:
            body = resp.json()
        except ValueError as exc:
            LOG.error("Gemini response is not JSON (first 200 chars: %r)", resp.text[:200])
            raise ResponseDecodeFailure("收到的回應格式不符預期。") from exc

        message = _error_message(body)
        if message or resp.status_code >= 400:
            LOG.error("Gemini HTTP %s: %s", resp.status_code, message or resp.text[:500])
            raise NetworkFailure(message or f"HTTP {resp.status_code}")

        text = _first_text(body)
        if text is None:
            LOG.error("Gemini returned no text parts")
            raise EmptyResponseFailure("Gemini API 未回傳任何文字。")
        LOG.info("Gemini answered in %.2fs with %d characters", time.perf_counter() - t0, len(text))
        return text


class OpenAIVisionClient(VisionClient):
    """OpenAI-compatible chat completion with an image data URL."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: int = 60,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        if client is None:
            http_client = httpx.Client(
                timeout=httpx.Timeout(connect=10.0, read=float(timeout), write=30.0, pool=10.0),
            )
            client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=http_client,
                max_retries=0,
            )
        self._client = client

    def recognize(self, image_bytes: bytes) -> str:
        data_url = f"data:{IMAGE_MIME};base64," + base64.b64encode(image_bytes).decode("ascii")
        LOG.info("Calling OpenAI-compatible model '%s' (%d image bytes)", self.model, len(image_bytes))
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": RECOGNITION_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
                temperature=0,
            )
        except APIStatusError as exc:
            LOG.error("OpenAI HTTP %s: %s", exc.status_code, exc.message)
            raise NetworkFailure(exc.message) from exc
        except APIConnectionError as exc:
            LOG.error("OpenAI request failed: %s", exc)
            raise NetworkFailure(str(exc)) from exc
        except APIError as exc:
            LOG.error("OpenAI response could not be read: %s", exc)
            raise ResponseDecodeFailure(str(exc)) from exc

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise EmptyResponseFailure("模型未回傳任何結果。")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content is None:
            raise EmptyResponseFailure("模型未回傳任何文字。")
        if not isinstance(content, str):
            raise ResponseDecodeFailure("收到的回應格式不符預期。")
        text = content.strip()
        if not text:
            raise EmptyResponseFailure("模型未回傳任何文字。")
        return text


class SimulatedVisionClient(VisionClient):
    """Offline stand-in that answers with a flagged, never-parsed template."""

    def __init__(self, name: str = "電阻", spec: str = "1K", function: str = "限流") -> None:
        self.answer = simulated_answer(name, spec, function)

    def recognize(self, image_bytes: bytes) -> str:
        LOG.info("Simulation mode: returning canned answer for %d image bytes", len(image_bytes))
        return self.answer


def build_vision_client(config: AppConfig) -> Optional[VisionClient]:
    """Create the client for the configured backend, or None without credentials."""
    if config.backend == BACKEND_SIMULATED:
        return SimulatedVisionClient()
    if config.backend == BACKEND_OPENAI:
        if not config.openai_api_key:
            LOG.error("OPENAI_API_KEY missing in env/.env; cannot call the vision API")
            return None
        return OpenAIVisionClient(
            config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            timeout=config.vision_timeout,
        )
    if not config.gemini_api_key:
        LOG.error("GEMINI_API_KEY missing in env/.env; cannot call the vision API")
        return None
    return GeminiVisionClient(
        config.gemini_api_key,
        model=config.gemini_model,
        timeout=config.vision_timeout,
    )
