"""Claude API advisor backend."""

from __future__ import annotations

from . import AdvisorBackend


class ClaudeAdvisorBackend(AdvisorBackend):
    """Generate inventory advice with Claude.

    Claude has no schema-constrained mode here; the prompt spells out the
    JSON shape and the reply is validated by ``request.parse_response``.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(api_key=api_key, model=model)
        self._max_tokens = max_tokens

    async def generate(self, prompt: str) -> str:
        self._require_key("ANTHROPIC_API_KEY")

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )

        return response.content[0].text
