"""
Map structured extraction results onto the canonical Invoice.

Both mappers are pure: they never raise on missing data. Absent fields
become empty strings or zero and an empty item list becomes a single
explanatory placeholder, so the review UI never sees an empty invoice.
"""

from typing import Any
from loguru import logger
from ..models.invoice import (
    DEFAULT_GST_RATE,
    UNKNOWN_SUPPLIER,
    Invoice,
    InvoiceMeta,
    LineItem,
    Supplier,
    Totals,
    money,
)

NO_ITEMS_DESCRIPTION = "No line items detected - please enter items manually"
CURRENCY_CODES = ["USD", "AUD", "NZD", "EUR", "GBP", "CAD", "JPY", "CNY"]


def parse_amount(raw: Any) -> float | None:
    """Parse "$1,234.56", "AUD 385.00" or a bare number. None when unparseable."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).replace("$", "").replace(",", "")
    for code in CURRENCY_CODES:
        text = text.replace(code, "")
    text = text.strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        logger.debug(f"Could not parse amount: {raw}")
        return None


def field_content(fields: dict, *names: str, default: str = "") -> str:
    """Content of the first named field that has any."""
    for name in names:
        field = fields.get(name)
        if not field:
            continue
        content = field.get("content") or field.get("valueString")
        if content:
            return str(content).strip()
    return default


def field_number(fields: dict, name: str) -> float | None:
    field = fields.get(name)
    if not field:
        return None
    if field.get("valueNumber") is not None:
        return float(field["valueNumber"])
    currency = field.get("valueCurrency") or {}
    if currency.get("amount") is not None:
        return float(currency["amount"])
    return parse_amount(field.get("content"))


def _items_or_placeholder(items: list[LineItem]) -> list[LineItem]:
    if items:
        return items
    logger.warning("No line items found in structured result, adding placeholder")
    return [LineItem.placeholder(NO_ITEMS_DESCRIPTION)]


def map_invoice_fields(fields: dict[str, Any] | None, gst_rate: float = DEFAULT_GST_RATE) -> Invoice:
    """Azure prebuilt-invoice fields (REST shape) -> Invoice."""
    fields = fields or {}
    logger.debug("Mapping structured invoice fields", available=sorted(fields.keys()))

    supplier = Supplier(
        name=field_content(fields, "VendorName", "MerchantName", default=UNKNOWN_SUPPLIER),
        address=field_content(fields, "VendorAddress", "MerchantAddress"),
        tax_id=field_content(fields, "VendorTaxId"),
    )
    meta = InvoiceMeta(
        number=field_content(fields, "InvoiceId"),
        date=field_content(fields, "InvoiceDate"),
        due_date=field_content(fields, "DueDate"),
        po_number=field_content(fields, "PurchaseOrder"),
    )

    raw_items = (fields.get("Items") or {}).get("valueArray") or []
    items = []
    for index, raw_item in enumerate(raw_items, start=1):
        item_fields = (raw_item or {}).get("valueObject") or {}
        quantity = field_number(item_fields, "Quantity") or 1
        unit_price = field_number(item_fields, "UnitPrice") or 0.0
        items.append(LineItem.priced(
            description=field_content(item_fields, "Description", "ProductCode", default=f"Item {index}"),
            quantity=quantity,
            unit_cost=unit_price,
            line_total=field_number(item_fields, "Amount"),
            gst_rate=gst_rate,
            line_number=index,
            product_code=field_content(item_fields, "ProductCode"),
            unit=field_content(item_fields, "Unit", default="each"),
        ))

    totals = Totals(
        subtotal_ex_tax=money(field_number(fields, "SubTotal") or 0),
        tax_amount=money(field_number(fields, "TotalTax") or 0),
        total_inc_tax=money(field_number(fields, "InvoiceTotal") or 0),
    )

    logger.info(
        "Mapped structured invoice",
        supplier=supplier.name,
        items=len(items),
        total=totals.total_inc_tax,
    )

    return Invoice(
        supplier=supplier,
        meta=meta,
        line_items=_items_or_placeholder(items),
        totals=totals,
        extraction_method="Azure Invoice Model",
    )


def map_ai_payload(payload: dict[str, Any] | None, gst_rate: float = DEFAULT_GST_RATE) -> Invoice:
    """LLM JSON ({supplier, invoice, line_items, totals}) -> Invoice."""
    payload = payload or {}
    supplier_data = payload.get("supplier") or {}
    invoice_data = payload.get("invoice") or {}

    items = []
    for index, raw_item in enumerate(payload.get("line_items") or [], start=1):
        if not isinstance(raw_item, dict):
            continue
        items.append(LineItem.priced(
            description=str(raw_item.get("description") or raw_item.get("product_code") or f"Item {index}"),
            quantity=parse_amount(raw_item.get("quantity")),
            unit_cost=parse_amount(raw_item.get("unit_cost")),
            line_total=parse_amount(raw_item.get("line_total_ex_gst")),
            gst_rate=gst_rate,
            line_number=index,
            product_code=str(raw_item.get("product_code") or ""),
            unit=str(raw_item.get("unit") or "each"),
        ))

    totals_data = payload.get("totals") or {}
    if totals_data:
        totals = Totals(
            subtotal_ex_tax=money(parse_amount(totals_data.get("subtotal_ex_gst")) or 0),
            tax_amount=money(parse_amount(totals_data.get("gst_amount")) or 0),
            total_inc_tax=money(parse_amount(totals_data.get("total_inc_gst")) or 0),
        )
    else:
        totals = Totals.from_items(items)

    return Invoice(
        supplier=Supplier(
            name=str(supplier_data.get("name") or UNKNOWN_SUPPLIER),
            address=str(supplier_data.get("address") or ""),
            tax_id=str(supplier_data.get("abn") or ""),
        ),
        meta=InvoiceMeta(
            number=str(invoice_data.get("number") or ""),
            date=str(invoice_data.get("date") or ""),
            due_date=str(invoice_data.get("due_date") or ""),
            po_number=str(invoice_data.get("po_number") or ""),
        ),
        line_items=_items_or_placeholder(items),
        totals=totals,
        extraction_method="AI Invoice Parser",
    )
