"""Gemini API advisor backend."""

from __future__ import annotations

from . import AdvisorBackend
from .request import RESPONSE_SCHEMA


class GeminiAdvisorBackend(AdvisorBackend):
    """Generate inventory advice with Google Gemini in JSON mode."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.5-flash") -> None:
        super().__init__(api_key=api_key, model=model)

    async def generate(self, prompt: str) -> str:
        self._require_key("GEMINI_API_KEY")

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(
            self._model,
            generation_config={
                "response_mime_type": "application/json",
                "response_schema": RESPONSE_SCHEMA,
            },
        )

        response = await model.generate_content_async(prompt)
        return response.text
