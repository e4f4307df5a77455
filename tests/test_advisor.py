"""Tests for advisor backends and inventory analysis (mocked API calls)."""

import asyncio
import json
import sys
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from supplecontrol.advisor import AdvisorBackend, create_backend
from supplecontrol.advisor.claude import ClaudeAdvisorBackend
from supplecontrol.advisor.gemini import GeminiAdvisorBackend
from supplecontrol.advisor.request import RESPONSE_SCHEMA
from supplecontrol.advisor.service import InventoryAdvisor, analyze_inventory
from supplecontrol.config import load_config
from supplecontrol.models import Product

TODAY = date(2024, 6, 1)

VALID_REPLY = json.dumps({
    "summary": "A creatina vence em 9 dias.",
    "suggestions": [
        {"title": "Kit Creatina", "description": "Ofereça em combo com whey.", "priority": "high"},
    ],
})


class FakeBackend(AdvisorBackend):
    """Backend that records prompts and returns a canned reply."""

    def __init__(self, reply=VALID_REPLY, api_key="test-key", error=None, delay=0.0):
        super().__init__(api_key=api_key, model="fake")
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


def _product(pid, offset):
    return Product(
        id=pid,
        name=f"Produto {pid}",
        quantity=1,
        expiration_date=(TODAY + timedelta(days=offset)).isoformat(),
    )


@pytest.fixture
def mixed_products():
    return [_product("e", -31), _product("w", 9), _product("g", 214)]


@pytest.fixture
def good_products():
    return [_product("g1", 100), _product("g2", 300)]


class TestCreateBackend:
    def test_create_gemini_backend(self):
        config = load_config()
        backend = create_backend(config)
        assert isinstance(backend, GeminiAdvisorBackend)
        assert backend.model == "gemini-2.5-flash"

    def test_create_claude_backend(self):
        config = load_config()
        config.advisor.backend = "claude"
        backend = create_backend(config)
        assert isinstance(backend, ClaudeAdvisorBackend)

    def test_create_unknown_backend(self):
        config = load_config()
        config.advisor.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown advisor backend"):
            create_backend(config)


class TestAnalyzeInventory:
    @pytest.mark.asyncio
    async def test_success_parses_reply(self, mixed_products):
        backend = FakeBackend()
        result = await analyze_inventory(mixed_products, backend, today=TODAY)

        assert result.summary == "A creatina vence em 9 dias."
        assert result.suggestions[0].title == "Kit Creatina"
        assert len(backend.prompts) == 1

    @pytest.mark.asyncio
    async def test_prompt_contains_only_at_risk(self, mixed_products):
        backend = FakeBackend()
        await analyze_inventory(mixed_products, backend, today=TODAY)

        prompt = backend.prompts[0]
        assert "Produto e" in prompt
        assert "Produto w" in prompt
        assert "Produto g" not in prompt

    @pytest.mark.asyncio
    async def test_all_good_makes_no_call(self, good_products):
        backend = FakeBackend()
        result = await analyze_inventory(good_products, backend, today=TODAY)

        assert backend.prompts == []
        assert "excelente estado" in result.summary
        assert len(result.suggestions) == 2

    @pytest.mark.asyncio
    async def test_empty_inventory_is_all_clear(self):
        backend = FakeBackend()
        result = await analyze_inventory([], backend, today=TODAY)
        assert backend.prompts == []
        assert "excelente estado" in result.summary

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_call(self, mixed_products):
        backend = FakeBackend(api_key="")
        result = await analyze_inventory(mixed_products, backend, today=TODAY)

        assert backend.prompts == []
        assert len(result.suggestions) == 1
        assert result.suggestions[0].priority == "high"
        assert "não configurada" in result.summary

    @pytest.mark.asyncio
    async def test_no_backend(self, mixed_products):
        result = await analyze_inventory(mixed_products, None, today=TODAY)
        assert result.suggestions[0].priority == "high"

    @pytest.mark.asyncio
    async def test_call_error_returns_fallback(self, mixed_products):
        backend = FakeBackend(error=RuntimeError("network down"))
        result = await analyze_inventory(mixed_products, backend, today=TODAY)

        assert len(backend.prompts) == 1
        assert result.suggestions[0].title == "Verificação Manual Necessária"
        assert result.suggestions[0].priority == "high"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", None, "isto não é json", '{"summary": 1}'])
    async def test_bad_reply_returns_fallback(self, mixed_products, reply):
        backend = FakeBackend(reply=reply)
        result = await analyze_inventory(mixed_products, backend, today=TODAY)
        assert result.suggestions[0].title == "Verificação Manual Necessária"

    @pytest.mark.asyncio
    async def test_fenced_reply_is_accepted(self, mixed_products):
        backend = FakeBackend(reply=f"```json\n{VALID_REPLY}\n```")
        result = await analyze_inventory(mixed_products, backend, today=TODAY)
        assert result.suggestions[0].title == "Kit Creatina"

    @pytest.mark.asyncio
    async def test_max_items_caps_payload(self):
        products = [_product(str(i), i) for i in range(40)]
        backend = FakeBackend()
        await analyze_inventory(products, backend, today=TODAY, max_items=5)

        prompt = backend.prompts[0]
        assert '"days": 4' in prompt
        assert '"days": 5' not in prompt

    @pytest.mark.asyncio
    async def test_oversized_max_items_is_capped(self):
        products = [_product(str(i), i % 61) for i in range(200)]
        backend = FakeBackend()
        await analyze_inventory(products, backend, today=TODAY, max_items=500)

        assert backend.prompts[0].count('"days":') == 30

    @pytest.mark.asyncio
    async def test_non_integer_max_items_returns_fallback(self, mixed_products):
        backend = FakeBackend()
        result = await analyze_inventory(mixed_products, backend, today=TODAY, max_items="10")

        assert backend.prompts == []
        assert result.suggestions[0].title == "Verificação Manual Necessária"


class TestInventoryAdvisor:
    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_request(self, mixed_products):
        backend = FakeBackend(delay=0.05)
        advisor = InventoryAdvisor(backend)

        first = asyncio.ensure_future(advisor.analyze(mixed_products, today=TODAY))
        await asyncio.sleep(0)
        assert advisor.busy is True
        second = await advisor.analyze(mixed_products, today=TODAY)
        first_result = await first

        assert len(backend.prompts) == 1
        assert first_result == second
        assert advisor.busy is False

    @pytest.mark.asyncio
    async def test_sequential_calls_issue_new_requests(self, mixed_products):
        backend = FakeBackend()
        advisor = InventoryAdvisor(backend)

        await advisor.analyze(mixed_products, today=TODAY)
        await advisor.analyze(mixed_products, today=TODAY)
        assert len(backend.prompts) == 2


    @pytest.mark.asyncio
    async def test_different_input_waits_then_issues_own_request(self, mixed_products):
        backend = FakeBackend(delay=0.05)
        advisor = InventoryAdvisor(backend)
        other = [_product("x", 3)]

        first = asyncio.ensure_future(advisor.analyze(mixed_products, today=TODAY))
        await asyncio.sleep(0)
        await advisor.analyze(other, today=TODAY)
        await first

        assert len(backend.prompts) == 2
        assert "Produto x" not in backend.prompts[0]
        assert "Produto x" in backend.prompts[1]

    @pytest.mark.asyncio
    async def test_different_date_is_not_joined(self, mixed_products):
        backend = FakeBackend(delay=0.05)
        advisor = InventoryAdvisor(backend)

        first = asyncio.ensure_future(advisor.analyze(mixed_products, today=TODAY))
        await asyncio.sleep(0)
        await advisor.analyze(mixed_products, today=TODAY + timedelta(days=1))
        await first

        assert len(backend.prompts) == 2


class TestGeminiAdvisorBackend:
    @pytest.mark.asyncio
    async def test_generate_requires_api_key(self):
        backend = GeminiAdvisorBackend(api_key="")
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            await backend.generate("prompt")

    @pytest.mark.asyncio
    async def test_generate_mocked(self):
        mock_response = MagicMock()
        mock_response.text = VALID_REPLY

        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules,
            {"google": mock_google, "google.generativeai": mock_genai},
        ):
            backend = GeminiAdvisorBackend(api_key="test-key")
            text = await backend.generate("analise")

        assert text == VALID_REPLY
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        _, kwargs = mock_genai.GenerativeModel.call_args
        assert kwargs["generation_config"]["response_mime_type"] == "application/json"
        assert kwargs["generation_config"]["response_schema"] == RESPONSE_SCHEMA
        mock_model.generate_content_async.assert_awaited_once_with("analise")


class TestClaudeAdvisorBackend:
    @pytest.mark.asyncio
    async def test_generate_requires_api_key(self):
        backend = ClaudeAdvisorBackend(api_key="")
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            await backend.generate("prompt")

    @pytest.mark.asyncio
    async def test_generate_mocked(self, mixed_products):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(text=VALID_REPLY)]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeAdvisorBackend(api_key="test-key", max_tokens=512)
            result = await analyze_inventory(mixed_products, backend, today=TODAY)

        assert result.suggestions[0].title == "Kit Creatina"
        _, kwargs = mock_client.messages.create.call_args
        assert kwargs["max_tokens"] == 512
        assert "Produto w" in kwargs["messages"][0]["content"]
