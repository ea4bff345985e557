
from pydantic import BaseModel, Field

DEFAULT_GST_RATE = 0.10
UNKNOWN_SUPPLIER = "Unknown Supplier"


def money(value: float) -> float:
    return round(float(value), 2)


class UploadedFile(BaseModel):
    """One uploaded document, decoded from the request body."""
    filename: str = "uploaded_file"
    content_type: str = "application/octet-stream"
    data: bytes = b""

    model_config = {"frozen": True}

    @property
    def size(self) -> int:
        return len(self.data)


class Supplier(BaseModel):
    name: str = UNKNOWN_SUPPLIER
    address: str = ""
    tax_id: str = ""  # ABN for Australian suppliers


class InvoiceMeta(BaseModel):
    number: str = ""
    date: str = ""
    due_date: str = ""
    po_number: str = ""


class LineItem(BaseModel):
    line_number: int = 1
    product_code: str = ""
    description: str
    quantity: float = 1.0
    unit_cost: float = 0.0
    line_total_ex_tax: float = 0.0
    tax_amount: float = 0.0
    line_total_inc_tax: float = 0.0
    unit: str = "each"

    # Filled in by the pricing rules
    category: str | None = None
    markup: float | None = None  # multiplier, e.g. 1.40
    markup_percent: float | None = None
    retail_price: float | None = None  # per unit, inc GST
    review_required: bool = False
    notes: list[str] = Field(default_factory=list)

    @classmethod
    def priced(
        cls,
        description: str,
        quantity: float | None = 1,
        unit_cost: float | None = 0.0,
        line_total: float | None = None,
        gst_rate: float = DEFAULT_GST_RATE,
        **extra,
    ) -> "LineItem":
        """Build an item from whatever amounts were recovered.

        Quantity falls back to 1 when missing or not positive, unit cost to 0,
        and the ex-tax line total to quantity x unit cost.
        """
        qty = quantity if quantity and quantity > 0 else 1
        cost = unit_cost or 0.0
        # tax columns derive from the rounded ex-tax total so inc == ex x (1 + rate) to the cent
        total = money(line_total if line_total else qty * cost)
        return cls(
            description=description,
            quantity=qty,
            unit_cost=money(cost),
            line_total_ex_tax=total,
            tax_amount=money(total * gst_rate),
            line_total_inc_tax=money(total * (1 + gst_rate)),
            **extra,
        )

    @classmethod
    def placeholder(cls, description: str, line_number: int = 1) -> "LineItem":
        return cls(line_number=line_number, description=description)


class Totals(BaseModel):
    subtotal_ex_tax: float = 0.0
    tax_amount: float = 0.0
    total_inc_tax: float = 0.0

    @classmethod
    def from_items(cls, items: list[LineItem]) -> "Totals":
        subtotal = sum(item.line_total_ex_tax for item in items)
        tax = sum(item.tax_amount for item in items)
        return cls(subtotal_ex_tax=money(subtotal), tax_amount=money(tax), total_inc_tax=money(subtotal + tax))


class Invoice(BaseModel):
    supplier: Supplier = Field(default_factory=Supplier)
    meta: InvoiceMeta = Field(default_factory=InvoiceMeta)
    line_items: list[LineItem] = Field(default_factory=list)
    totals: Totals = Field(default_factory=Totals)
    extraction_method: str = "Unknown"
    processing_notes: list[str] = Field(default_factory=list)

    @classmethod
    def placeholder(cls, filename: str, reason: str, notes: list[str] | None = None) -> "Invoice":
        """Well-formed stand-in returned when every extraction path failed."""
        return cls(
            supplier=Supplier(name="Processing Error"),
            line_items=[LineItem.placeholder(f"Unable to process {filename} - {reason}")],
            extraction_method="Error Fallback",
            processing_notes=list(notes or []),
        )

    @property
    def review_count(self) -> int:
        return sum(1 for item in self.line_items if item.review_required)
