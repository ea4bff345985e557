"""
Best-effort line item recovery from plain OCR text.

Used when the backend only returns text (prebuilt-read, or a document the
invoice model could not structure). This is pattern matching over lines,
not invoice grammar: it is lossy and format specific, which is why it sits
behind the narrow TextParser interface (text -> list[LineItem]).
"""

import re
from typing import Protocol
from loguru import logger
from ..models.invoice import (
    DEFAULT_GST_RATE,
    UNKNOWN_SUPPLIER,
    Invoice,
    LineItem,
    Supplier,
    Totals,
)

SUPPLIER_SCAN_LINES = 10
SUPPLIER_MIN_LENGTH = 5
MIN_LINE_LENGTH = 3
MIN_TEXT_LENGTH = 20
MIN_PRICE = 0.50
MAX_PRICE = 10000
MAX_FALLBACK_ITEMS = 3

SUPPLIER_STOP_WORDS = ("invoice", "tax", "gst", "total", "date")
ITEM_STOP_WORDS = ("total", "subtotal", "gst", "tax", "invoice", "date", "abn")

NO_ITEMS_DESCRIPTION = "Text extracted but no clear line items found"

_PRICE = r"\$?\s*(?P<price>\d{1,3}(?:,\d{3})*(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
_UNITS = r"kg|kgs|g|gm|l|ltr|ml|ea|each|pc|pcs|pk|pack|box|ctn|carton|bag|btl|bottle|jar|tub|unit|units|doz|dozen"
# A measure written straight onto the number ("500g", "1.5L") is a pack size, not a count
PACK_SIZE_UNITS = ("g", "gm", "kg", "kgs", "ml", "l", "ltr")

# Tried in order, first match wins.
LINE_PATTERNS = [
    ("desc_qty_unit_price", re.compile(
        rf"^(?P<desc>.*?[A-Za-z].*?)\s+(?P<qty>\d+(?:\.\d+)?)(?P<gap>\s*)(?P<unit>{_UNITS})\.?\s+{_PRICE}$",
        re.IGNORECASE,
    )),
    ("desc_price_qty", re.compile(
        rf"^(?P<desc>.*?[A-Za-z].*?)\s+{_PRICE}\s+(?:x\s*)?(?P<qty>\d+)$",
        re.IGNORECASE,
    )),
    ("desc_price", re.compile(
        rf"^(?P<desc>.*?[A-Za-z].*?)\s+{_PRICE}$",
        re.IGNORECASE,
    )),
]

LEADING_QTY = re.compile(r"^(?P<qty>\d+)\s*x\s+(?P<desc>.+)$", re.IGNORECASE)
DATE = re.compile(r"\d{2}/\d{2}/\d{4}")
CURRENCY_TOKEN = re.compile(r"\$\s*(\d[\d,]*\.\d{2})|(?<![\d/])(\d[\d,]*\.\d{2})(?![\d/])")


class TextParser(Protocol):
    def __call__(self, text: str, gst_rate: float = DEFAULT_GST_RATE) -> list[LineItem]: ...


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))


def plausible_price(price: float) -> bool:
    """Page numbers, dates and postcodes fall outside this range."""
    return MIN_PRICE < price < MAX_PRICE


def has_readable_text(text: str | None) -> bool:
    """More than MIN_TEXT_LENGTH characters once stripped."""
    return len((text or "").strip()) > MIN_TEXT_LENGTH


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if len(line.strip()) >= MIN_LINE_LENGTH]


def find_supplier_index(lines: list[str]) -> int | None:
    for index, line in enumerate(lines[:SUPPLIER_SCAN_LINES]):
        lowered = line.lower()
        if len(line) <= SUPPLIER_MIN_LENGTH:
            continue
        if line[0].isdigit() or line.startswith("$") or DATE.search(line):
            continue
        if any(word in lowered for word in SUPPLIER_STOP_WORDS):
            continue
        return index
    return None


def find_supplier_name(lines: list[str]) -> str:
    index = find_supplier_index(lines)
    return lines[index] if index is not None else UNKNOWN_SUPPLIER


def parse_line(line: str, gst_rate: float = DEFAULT_GST_RATE) -> LineItem | None:
    """One candidate item from one line, or None."""
    lowered = line.lower()
    if len(line) < MIN_LINE_LENGTH or any(word in lowered for word in ITEM_STOP_WORDS):
        return None

    for name, pattern in LINE_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue

        price = _to_number(match.group("price"))
        if not plausible_price(price):
            logger.debug(f"Rejected implausible price {price} in line: {line}")
            return None

        groups = match.groupdict()
        description = groups["desc"].strip(" -:\t")
        quantity = float(groups["qty"]) if groups.get("qty") else None
        unit = (groups.get("unit") or "each").lower()
        if name == "desc_qty_unit_price" and not groups["gap"] and unit in PACK_SIZE_UNITS:
            description = f"{description} {groups['qty']}{groups['unit']}"
            quantity = None
            unit = "each"
        if quantity is None:
            leading = LEADING_QTY.match(description)
            if leading:
                quantity = float(leading.group("qty"))
                description = leading.group("desc").strip()
        quantity = quantity if quantity and quantity > 0 else 1.0

        # "desc $4.50 x 3" quotes a unit price; the other layouts end with the line amount
        line_total = price * quantity if name == "desc_price_qty" else price

        logger.debug(f"Line matched {name}", description=description, quantity=quantity, price=price)
        return LineItem.priced(
            description=description,
            quantity=quantity,
            unit_cost=line_total / quantity,
            line_total=line_total,
            gst_rate=gst_rate,
            unit=unit,
        )
    return None


def parse_line_items(text: str, gst_rate: float = DEFAULT_GST_RATE) -> list[LineItem]:
    """Candidate line items from every line except the supplier heading."""
    lines = split_lines(text)
    supplier_index = find_supplier_index(lines)
    items = []
    for index, line in enumerate(lines):
        if index == supplier_index:
            continue
        item = parse_line(line, gst_rate)
        if item is not None:
            items.append(item.model_copy(update={"line_number": len(items) + 1}))
    return items


def fallback_items(text: str, gst_rate: float = DEFAULT_GST_RATE) -> list[LineItem]:
    """Any currency-looking amounts in the text, as generic placeholder items."""
    items = []
    for match in CURRENCY_TOKEN.finditer(text or ""):
        amount = _to_number(match.group(1) or match.group(2))
        if not plausible_price(amount):
            continue
        number = len(items) + 1
        items.append(LineItem.priced(
            description=f"Unidentified item {number}",
            unit_cost=amount,
            line_total=amount,
            gst_rate=gst_rate,
            line_number=number,
        ))
        if len(items) >= MAX_FALLBACK_ITEMS:
            break
    return items


def parse_invoice_text(
    text: str,
    gst_rate: float = DEFAULT_GST_RATE,
    parser: TextParser = parse_line_items,
) -> Invoice:
    lines = split_lines(text)
    logger.info(f"Parsing {len(lines)} text lines for invoice data")

    supplier = find_supplier_name(lines)
    items = parser(text, gst_rate)
    if not items:
        logger.warning("No line items matched, scanning text for amounts")
        items = fallback_items(text, gst_rate)
    if not items:
        items = [LineItem.placeholder(NO_ITEMS_DESCRIPTION)]

    invoice = Invoice(
        supplier=Supplier(name=supplier),
        line_items=items,
        totals=Totals.from_items(items),
        extraction_method="Text Parsing",
    )
    logger.info(
        "Text parsing result",
        supplier=supplier,
        items=len(items),
        total=invoice.totals.total_inc_tax,
    )
    return invoice
