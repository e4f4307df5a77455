"""Advisory request building and response parsing.

Only WARNING and EXPIRED products are sent to the model, soonest-expiring
first and capped at ``MAX_ADVISORY_ITEMS`` to bound the payload. The reply
must be a JSON object of the shape::

    {"summary": str,
     "suggestions": [{"title": str, "description": str,
                      "priority": "high" | "medium" | "low"}]}

Anything else is rejected with ``AdvisoryParseError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from ..expiry import WARNING_WINDOW_DAYS, days_until_expiry, status_for_days
from ..models import PRIORITIES, AnalysisResult, ExpiryStatus, Product, Suggestion

MAX_ADVISORY_ITEMS = 30

# Gemini response_schema (OpenAPI subset).
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING"},
        "suggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "priority": {"type": "STRING", "enum": list(PRIORITIES)},
                },
                "required": ["title", "description", "priority"],
            },
        },
    },
    "required": ["summary", "suggestions"],
}

_PROMPT = """\
Atue como um gerente de loja de suplementos experiente.
Analise a lista JSON de produtos com problemas de validade:
{inventory}

Gere um plano de ação tático em JSON.
Responda APENAS JSON válido, no formato:
{{"summary": "resumo", "suggestions": [{{"title": "título", "description": "descrição", "priority": "high|medium|low"}}]}}
Idioma: Português Brasileiro (PT-BR).

Diretrizes:
1. Para 'WARNING' (vence em até {window} dias): Sugira bundles, descontos progressivos ou brindes.
2. Para 'EXPIRED': Sugira descarte ecológico ou contato com fornecedor para troca.
3. Seja específico citando os nomes dos produtos.
"""


class AdvisoryParseError(ValueError):
    """The model reply does not match the expected response shape."""


@dataclass
class AtRiskItem:
    product: Product
    status: ExpiryStatus
    days: int

    def to_payload(self) -> dict:
        return {
            "name": self.product.name,
            "brand": self.product.brand,
            "quantity": self.product.quantity,
            "expires": self.product.expiration_date,
            "status": self.status.value,
            "days": self.days,
        }


def select_at_risk(
    products: Iterable[Product], today: date | None = None
) -> list[AtRiskItem]:
    """Products classified WARNING or EXPIRED, in input order.

    Products without a resolvable date classify as GOOD and are left out.
    """
    items: list[AtRiskItem] = []
    for p in products:
        days = days_until_expiry(p.expiration_date, today)
        if days is None:
            continue
        status = status_for_days(days)
        if status is not ExpiryStatus.GOOD:
            items.append(AtRiskItem(product=p, status=status, days=days))
    return items


def build_payload(
    items: Iterable[AtRiskItem], max_items: int = MAX_ADVISORY_ITEMS
) -> list[dict]:
    """Project at-risk items to the minimal shape, soonest-expiring first.

    The cap never exceeds ``MAX_ADVISORY_ITEMS``.
    """
    limit = max(1, min(max_items, MAX_ADVISORY_ITEMS))
    ordered = sorted(items, key=lambda i: i.days)
    return [i.to_payload() for i in ordered[:limit]]


def build_prompt(payload: list[dict]) -> str:
    inventory = json.dumps(payload, ensure_ascii=False)
    return _PROMPT.format(inventory=inventory, window=WARNING_WINDOW_DAYS)


def _strip_fences(text: str) -> str:
    lines = text.strip().split("\n")
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_response(text: str | None) -> AnalysisResult:
    """Parse and validate the model's JSON reply.

    Raises:
        AdvisoryParseError: On empty text, invalid JSON or a shape mismatch.
    """
    if not text or not text.strip():
        raise AdvisoryParseError("empty response")

    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise AdvisoryParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise AdvisoryParseError("response is not a JSON object")
    summary = data.get("summary")
    if not isinstance(summary, str):
        raise AdvisoryParseError("'summary' must be a string")
    raw_suggestions = data.get("suggestions")
    if not isinstance(raw_suggestions, list):
        raise AdvisoryParseError("'suggestions' must be an array")

    suggestions: list[Suggestion] = []
    for i, item in enumerate(raw_suggestions):
        if not isinstance(item, dict):
            raise AdvisoryParseError(f"suggestion {i} is not an object")
        title = item.get("title")
        description = item.get("description")
        priority = item.get("priority")
        if not isinstance(title, str) or not isinstance(description, str):
            raise AdvisoryParseError(f"suggestion {i} needs string title and description")
        if priority not in PRIORITIES:
            raise AdvisoryParseError(f"suggestion {i} has invalid priority {priority!r}")
        suggestions.append(
            Suggestion(title=title, description=description, priority=priority)
        )

    return AnalysisResult(summary=summary, suggestions=suggestions)


def all_clear_result() -> AnalysisResult:
    return AnalysisResult(
        summary=(
            "Seu estoque está em excelente estado! Não detectamos produtos "
            f"vencidos ou próximos do vencimento ({WARNING_WINDOW_DAYS} dias)."
        ),
        suggestions=[
            Suggestion(
                title="Manter Monitoramento",
                description="Continue cadastrando novos lotes para manter a saúde do estoque.",
                priority="low",
            ),
            Suggestion(
                title="Foco em Vendas",
                description=(
                    "Como não há perdas iminentes, foque em marketing para "
                    "seus produtos best-sellers."
                ),
                priority="medium",
            ),
        ],
    )


def not_configured_result() -> AnalysisResult:
    return AnalysisResult(
        summary=(
            "Chave de API não configurada. O Consultor IA precisa de uma "
            "chave válida para funcionar."
        ),
        suggestions=[
            Suggestion(
                title="Configuração Necessária",
                description=(
                    "Adicione sua API Key no arquivo .env ou nas "
                    "configurações do sistema."
                ),
                priority="high",
            )
        ],
    )


def fallback_result() -> AnalysisResult:
    return AnalysisResult(
        summary=(
            "Não foi possível conectar ao servidor de IA no momento. Por favor, "
            "verifique se existem produtos próximos do vencimento manualmente."
        ),
        suggestions=[
            Suggestion(
                title="Verificação Manual Necessária",
                description=(
                    "O sistema de IA está temporariamente indisponível. "
                    "Recomendamos focar nos produtos vencidos e em alerta "
                    "na lista de estoque."
                ),
                priority="high",
            )
        ],
    )
