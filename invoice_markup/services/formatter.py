
from ..models.invoice import Invoice, UNKNOWN_SUPPLIER, money
from ..models.responses import ProcessInvoiceResponse, ReviewItem, Summary, UIItem

DEFAULT_CATEGORY = "Groceries"
DEFAULT_MARKUP = 1.65


def format_for_ui(invoice: Invoice) -> ProcessInvoiceResponse:
    """Enhanced invoice -> the review UI's JSON contract."""
    items = []
    for item in invoice.line_items:
        markup = item.markup or DEFAULT_MARKUP
        items.append(UIItem(
            product=item.description,
            quantity=item.quantity,
            unit=item.unit or "each",
            cost_ex_gst=item.unit_cost,
            category=item.category or DEFAULT_CATEGORY,
            markup=markup,
            retail_price=item.retail_price if item.retail_price is not None else money(item.unit_cost * markup),
        ))

    review_items = [
        ReviewItem(product=item.description, product_code=item.product_code, notes=item.notes)
        for item in invoice.line_items
        if item.review_required
    ]

    summary = Summary(
        total_items=len(items),
        total_cost=money(sum(item.cost_ex_gst * item.quantity for item in items)),
        total_retail=money(sum(item.retail_price * item.quantity for item in items)),
        items_needing_review=len(review_items),
    )

    return ProcessInvoiceResponse(
        supplier=invoice.supplier.name or UNKNOWN_SUPPLIER,
        items=items,
        processing_notes=invoice.processing_notes or ["Processed with Azure Document Intelligence"],
        summary=summary,
        extraction_method=invoice.extraction_method,
        review_items=review_items,
    )
