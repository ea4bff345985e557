"""
Optional remote categorisation in front of the local pricing rules.

The remote call is best-effort: any failure (timeout, HTTP error, bad JSON,
wrong item count, unknown category) falls through to keyword classification,
and the result is then identical to running the local rules alone.
"""

import json
from loguru import logger
from .llm import LLMClient
from .pricing_rules import InvoicePricingRules
from ..core.errors import EnhancementError
from ..models.invoice import Invoice

CATEGORY_PROMPT = """You categorise products for an Australian organic grocery store.
Allowed categories: {categories}.
You receive a JSON list of invoice lines with an "index" and a "description".
Return a JSON object {{"items": [{{"index": int, "category": str}}]}} with one entry per line,
in the same order, using only the allowed categories."""


class RemoteEnhancer:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def categorize(self, invoice: Invoice, categories: list[str]) -> list[str]:
        lines = [
            {"index": index, "description": item.description}
            for index, item in enumerate(invoice.line_items)
        ]
        try:
            data = await self.llm.complete_json(
                CATEGORY_PROMPT.format(categories=", ".join(categories)),
                json.dumps(lines),
            )
        except Exception as e:
            raise EnhancementError(f"Enhancement request failed: {e}") from e

        results = data.get("items")
        if not isinstance(results, list) or len(results) != len(lines):
            raise EnhancementError("Enhancement response does not cover every line item")

        by_index = {}
        for entry in results:
            if not isinstance(entry, dict):
                raise EnhancementError("Malformed enhancement entry")
            category = entry.get("category")
            if category not in categories:
                raise EnhancementError(f"Unknown category from enhancement service: {category}")
            by_index[entry.get("index")] = category

        if set(by_index) != set(range(len(lines))):
            raise EnhancementError("Enhancement response indexes do not match line items")
        return [by_index[index] for index in range(len(lines))]


async def enhance_invoice(
    invoice: Invoice,
    rules: InvoicePricingRules,
    enhancer: RemoteEnhancer | None = None,
) -> Invoice:
    if enhancer is not None:
        try:
            categories = await enhancer.categorize(invoice, rules.config.categories)
            return rules.apply(invoice, categories=categories, source="remote categorisation")
        except Exception as e:
            logger.warning(f"Remote enhancement failed, using local rules: {e}")

    return rules.apply(invoice)
