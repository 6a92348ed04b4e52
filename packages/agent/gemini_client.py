"""Gemini API client using official google-generativeai SDK."""

from __future__ import annotations

import base64
import json
import os
import re
from typing import Any

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


class GeminiClient:
    def __init__(self, api_key: str, model: str | None = None) -> None:
        self.api_key = api_key
        self.model_name = model or os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        self._model = None
        if self.api_key:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate_text(self, *, prompt: str, temperature: float = 0.2) -> str:
        if not self._model:
            raise RuntimeError("Gemini API key not configured")

        config = GenerationConfig(temperature=temperature)

        try:
            response = self._model.generate_content(prompt, generation_config=config)
            if not response.parts:
                raise RuntimeError("Gemini returned empty response")
            return response.text
        except Exception as e:
            raise RuntimeError(f"Gemini generation failed: {e}") from e

    def generate_json(self, *, prompt: str) -> Any:
        """Return the parsed JSON object or array the model produced."""
        if not self._model:
            raise RuntimeError("Gemini API key not configured")

        config = GenerationConfig(
            temperature=0.1,
            response_mime_type="application/json"
        )

        try:
            response = self._model.generate_content(prompt, generation_config=config)
            return json.loads(response.text)
        except Exception:
            # Fallback to manual extraction if native JSON mode fails or model mismatch
            text = self.generate_text(prompt=prompt, temperature=0.1)
            return extract_json(text)

    def describe_image(self, *, image: str | bytes, prompt: str, mime_type: str = "image/jpeg") -> str:
        if not self._model:
            raise RuntimeError("Gemini API key not configured")

        data, mime_type = decode_image(image, mime_type)
        try:
            response = self._model.generate_content([{"mime_type": mime_type, "data": data}, prompt])
            if not response.parts:
                raise RuntimeError("Gemini returned empty response")
            return response.text.strip()
        except Exception as e:
            raise RuntimeError(f"Gemini image analysis failed: {e}") from e


def decode_image(image: str | bytes, default_mime: str = "image/jpeg") -> tuple[bytes, str]:
    """Accept raw bytes, a data URL, or bare base64 text."""
    if isinstance(image, bytes):
        return image, default_mime
    match = _DATA_URL.match(image.strip())
    if match:
        return base64.b64decode(match.group("data")), match.group("mime")
    return base64.b64decode(image), default_mime


def extract_json(raw: str) -> Any:
    text = raw.strip()
    if text.startswith("```"):
        text = re.sub(r"```(?:json)?", "", text).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    starts = [index for index in (text.find("{"), text.find("[")) if index >= 0]
    end = max(text.rfind("}"), text.rfind("]"))
    if starts and end > min(starts):
        sliced = text[min(starts) : end + 1]
        try:
            return json.loads(sliced)
        except json.JSONDecodeError:
            pass
    raise ValueError("Could not parse JSON payload from Gemini response")
