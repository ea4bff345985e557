"""
Business rules for retail pricing of supplier invoice lines.

Each line is put in a store category by keyword, the category's markup is
applied to the ex-GST unit cost, and GST is added to give the shelf price:

    retail_price = unit_cost x (1 + markup) x (1 + gst_rate)

Lines the rules cannot price confidently are flagged for manual review.
"""

from loguru import logger
from pydantic import BaseModel
from ..models.invoice import Invoice, LineItem, money

DEFAULT_CATEGORY = "Groceries"

# Order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Organic", ("organic", "bio", "certified")),
    ("Supplements", ("vitamin", "supplement", "mineral", "probiotic", "capsule", "tablet")),
    ("Bulk", ("bulk", "25kg", "20kg", "wholesale", "sack", "bag")),
    ("Cosmetics", ("cream", "oil", "soap", "shampoo", "lotion", "balm")),
]

DEFAULT_MARKUP_RULES = {
    "Organic": 0.45,
    "Supplements": 0.50,
    "Bulk": 0.35,
    "Cosmetics": 0.55,
    "Groceries": 0.40,
}

MIN_PRODUCT_CODE_LENGTH = 2
MIN_DESCRIPTION_LENGTH = 5


def categorize_product(description: str | None) -> str:
    """Store category for a line description (case-insensitive substring match)."""
    if not description:
        return DEFAULT_CATEGORY

    desc = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in desc for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def retail_price(unit_cost: float, markup: float, gst_rate: float) -> float:
    return money(unit_cost * (1 + markup) * (1 + gst_rate))


class PricingRulesConfig(BaseModel):
    """Configuration for pricing rules (loaded from environment)"""
    markup_rules: dict[str, float] = dict(DEFAULT_MARKUP_RULES)
    gst_rate: float = 0.10

    @property
    def categories(self) -> list[str]:
        return list(self.markup_rules)


class InvoicePricingRules:
    """Applies categories, markups and review flags to an invoice."""

    def __init__(self, config: PricingRulesConfig = None):
        self.config = config or PricingRulesConfig()

    def markup_for(self, category: str) -> float:
        return self.config.markup_rules.get(category, self.config.markup_rules.get(DEFAULT_CATEGORY, 0.0))

    def price_item(self, item: LineItem, category: str | None = None) -> LineItem:
        category = category or categorize_product(item.description)
        markup = self.markup_for(category)

        notes = list(item.notes)
        missing_code = not item.product_code or len(item.product_code) < MIN_PRODUCT_CODE_LENGTH
        if missing_code:
            notes.append("Missing product code")
        if item.unit_cost == 0:
            notes.append("No unit cost detected")
        if len(item.description) < MIN_DESCRIPTION_LENGTH:
            notes.append("Description unclear")

        priced = item.model_copy(update={
            "category": category,
            "markup": round(1 + markup, 4),
            "markup_percent": round(markup * 100, 2),
            "retail_price": retail_price(item.unit_cost, markup, self.config.gst_rate),
            "review_required": missing_code or item.unit_cost == 0,
            "notes": notes,
        })
        logger.debug(
            "Enhanced line item",
            description=item.description,
            category=category,
            markup_percent=priced.markup_percent,
            retail=priced.retail_price,
        )
        return priced

    def apply(self, invoice: Invoice, categories: list[str] | None = None, source: str = "local rules") -> Invoice:
        """New invoice with every line priced.

        `categories`, when given, overrides keyword classification item by item
        (used for remote categorisation); markups always come from the table.
        """
        if categories is not None and len(categories) != len(invoice.line_items):
            raise ValueError("categories must match line items one to one")

        items = [
            self.price_item(item, categories[index] if categories else None)
            for index, item in enumerate(invoice.line_items)
        ]
        priced = invoice.model_copy(update={"line_items": items})

        priced.processing_notes = list(invoice.processing_notes) + [
            f"Pricing rules applied ({source})",
            f"{len(items)} items processed",
            f"{priced.review_count} items flagged for review",
        ]

        logger.info(
            "Pricing rules applied",
            source=source,
            items=len(items),
            review=priced.review_count,
        )
        return priced


def create_pricing_rules(
    markup_rules: dict[str, float] = None,
    gst_rate: float = None,
    settings=None,
) -> InvoicePricingRules:
    """
    Factory function to create pricing rules with optional overrides.

    Uses settings as defaults, can be overridden per call.
    """
    if settings is None:
        from ..core.config import settings

    config = PricingRulesConfig(
        markup_rules=markup_rules if markup_rules is not None else settings.markup_rules(),
        gst_rate=gst_rate if gst_rate is not None else settings.gst_rate,
    )
    return InvoicePricingRules(config)
