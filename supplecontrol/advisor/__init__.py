"""Advisor backend base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import AppConfig


class AdvisorNotConfiguredError(ValueError):
    """Raised when a backend is used without an API key."""


class AdvisorBackend(ABC):
    """Abstract base for the external text-generation call."""

    def __init__(self, api_key: str = "", model: str = "") -> None:
        self._api_key = api_key
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send one prompt and return the raw response text.

        The response is expected to be a JSON object matching
        ``request.RESPONSE_SCHEMA``.

        Raises:
            AdvisorNotConfiguredError: If no API key is set.
        """
        ...

    def _require_key(self, env_var: str) -> None:
        if not self._api_key:
            raise AdvisorNotConfiguredError(
                f"{type(self).__name__} has no API key. "
                f"Set it in the config file or the {env_var} environment variable."
            )


def create_backend(config: AppConfig) -> AdvisorBackend:
    """Create an advisor backend based on configuration."""
    backend_name = config.advisor.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiAdvisorBackend

            return GeminiAdvisorBackend(
                api_key=config.advisor.gemini.api_key,
                model=config.advisor.gemini.model,
            )
        case "claude":
            from .claude import ClaudeAdvisorBackend

            return ClaudeAdvisorBackend(
                api_key=config.advisor.claude.api_key,
                model=config.advisor.claude.model,
                max_tokens=config.advisor.claude.max_tokens,
            )
        case _:
            raise ValueError(
                f"Unknown advisor backend: {backend_name!r} "
                f"(choose gemini or claude)"
            )
