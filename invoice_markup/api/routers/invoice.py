
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from loguru import logger
from ..deps import get_pipeline
from ...core.errors import InvoiceProcessingError, UploadError
from ...models.invoice import Invoice, UploadedFile
from ...models.responses import ProcessInvoiceResponse
from ...services.csv_export import export_filename, export_items_csv
from ...services.pipeline import InvoicePipeline
from ..errors import error_response

router = APIRouter(prefix="/invoices", tags=["invoices"])

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


async def read_upload(request: Request, file: UploadFile | None) -> UploadedFile:
    """
    Decode the uploaded document.

    Accepts either:
    - multipart/form-data with a `file` part (the review UI)
    - a raw binary body (application/pdf, image/*, application/octet-stream)
    """
    if file is not None:
        data = await file.read()
        return UploadedFile(
            filename=file.filename or "uploaded_file",
            content_type=file.content_type or "application/octet-stream",
            data=data,
        )

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/", "application/x-www-form-urlencoded")):
        raise UploadError("No file uploaded", details="Send the document in a 'file' form field")

    data = await request.body()
    if not data:
        raise UploadError("No file uploaded", details="Provide a multipart 'file' part or a raw request body")
    return UploadedFile(
        filename=request.headers.get("x-filename", "uploaded_file"),
        content_type=content_type or "application/octet-stream",
        data=data,
    )


@router.options("/process")
async def process_invoice_preflight():
    """CORS preflight for clients that do not go through CORSMiddleware."""
    return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)


@router.post("/process", response_model=ProcessInvoiceResponse)
async def process_invoice(
    request: Request,
    file: UploadFile = File(None),
    provider: str | None = Form(None),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    """
    Extract line items from a supplier invoice and price them for retail.

    Backend failures never fail the request: the response degrades to a
    placeholder item the reviewer can fill in by hand.
    """
    try:
        upload = await read_upload(request, file)
        provider = provider or request.query_params.get("provider")
        return await pipeline.process(upload, provider)
    except InvoiceProcessingError:
        raise
    except Exception as e:
        logger.exception(f"Invoice processing error: {e}")
        return error_response(500, str(e), "Check function logs for more information")


@router.post("/extract", response_model=Invoice)
async def extract_invoice(
    request: Request,
    file: UploadFile = File(None),
    provider: str | None = Form(None),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    """Canonical invoice as extracted, before pricing rules are applied."""
    try:
        upload = await read_upload(request, file)
        provider = provider or request.query_params.get("provider")
        return await pipeline.extract(upload, provider)
    except InvoiceProcessingError:
        raise
    except Exception as e:
        logger.exception(f"Invoice extraction error: {e}")
        return error_response(500, str(e), "Check function logs for more information")


@router.post("/export")
async def export_invoice_csv(result: ProcessInvoiceResponse) -> Response:
    """Reviewed items (a /invoices/process response) as a CSV download."""
    filename = export_filename(result)
    logger.info("Exporting reviewed items", supplier=result.supplier, items=len(result.items))
    return Response(
        content=export_items_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
