import csv
import io
from ..models.responses import ProcessInvoiceResponse

CSV_COLUMNS = [
    "Product",
    "Quantity",
    "Unit",
    "Cost ex GST",
    "Category",
    "Markup",
    "Retail Price (inc GST)",
]


def export_items_csv(result: ProcessInvoiceResponse) -> str:
    """Reviewed items as CSV text, one row per item, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for item in result.items:
        writer.writerow([
            item.product,
            f"{item.quantity:g}",
            item.unit,
            f"{item.cost_ex_gst:.2f}",
            item.category,
            f"{item.markup:.2f}",
            f"{item.retail_price:.2f}",
        ])
    return buffer.getvalue()


def export_filename(result: ProcessInvoiceResponse) -> str:
    # header values are latin-1 on the wire, so keep ASCII letters and digits only
    safe = "".join(ch if ch.isascii() and ch.isalnum() else "-" for ch in result.supplier.lower()).strip("-")
    return f"{safe or 'invoice'}-items.csv"
