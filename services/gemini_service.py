import logging
from typing import Any, Dict, Optional

import google.generativeai as genai  # type: ignore[import]
from flask import current_app

from services.errors import ProviderUnavailable

logger = logging.getLogger(__name__)

EXTENSION_KEY = "gemini_client"


class GeminiClient:
    """Thin wrapper around the Gemini SDK returning plain completion text."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-1.5-pro",
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        self._model = None

    def _get_model(self):
        if not self.api_key:
            logger.error("GEMINI_API_KEY is not configured; cannot call Gemini.")
            raise ProviderUnavailable("GEMINI_API_KEY is not configured")
        if self._model is None:
            genai.configure(api_key=self.api_key)
            # Model name can be swapped centrally via GEMINI_MODEL.
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def generate(self, prompt: str) -> str:
        """Send one prompt and return the completion text.

        Any SDK failure (network, auth, quota, blocked output) is logged and
        re-raised as ProviderUnavailable.
        """
        model = self._get_model()
        try:
            response = model.generate_content(
                prompt,
                generation_config=self.generation_config,
            )
            text = response.text
        except Exception as exc:
            logger.exception("Gemini generation failed: %s", exc)
            raise ProviderUnavailable(f"Gemini generation failed: {exc}") from exc

        if not text or not text.strip():
            logger.error("Gemini returned an empty completion.")
            raise ProviderUnavailable("Gemini returned an empty completion")
        return text


def _build_client_from_config() -> GeminiClient:
    config = current_app.config
    return GeminiClient(
        api_key=config.get("GEMINI_API_KEY"),
        model_name=config.get("GEMINI_MODEL", "gemini-1.5-pro"),
        temperature=config.get("GEMINI_TEMPERATURE", 0.7),
        max_output_tokens=config.get("GEMINI_MAX_OUTPUT_TOKENS", 1024),
    )


def get_client():
    """Return the app's Gemini client, creating it from config on first use."""
    client = current_app.extensions.get(EXTENSION_KEY)
    if client is None:
        client = _build_client_from_config()
        current_app.extensions[EXTENSION_KEY] = client
    return client
