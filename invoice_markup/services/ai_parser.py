
from loguru import logger
from .invoice_types import RawExtraction
from .llm import LLMClient
from .text_parser import has_readable_text
from ..core.errors import LLMError

EXTRACTION_PROMPT = """You read OCR text from Australian supplier invoices for a retail store.
Return a single JSON object with exactly these keys:
{
  "supplier": {"name": str, "address": str, "abn": str},
  "invoice": {"number": str, "date": str, "due_date": str, "po_number": str},
  "line_items": [
    {"product_code": str, "description": str, "quantity": number,
     "unit_cost": number, "line_total_ex_gst": number, "unit": str}
  ],
  "totals": {"subtotal_ex_gst": number, "gst_amount": number, "total_inc_gst": number}
}
Amounts are numbers without currency symbols. Use "" or 0 for anything you cannot find.
Do not invent line items that are not in the text."""


class AIInvoiceParserBackend:
    """OCR text from another backend, structured by an LLM."""

    name = "openai"
    supports_structured = True

    def __init__(self, llm: LLMClient | None, text_backend):
        self.llm = llm
        self.text_backend = text_backend

    def is_configured(self) -> bool:
        return self.llm is not None and self.text_backend.is_configured()

    def missing_credentials(self) -> dict[str, str]:
        status = dict(self.text_backend.missing_credentials())
        status["llm"] = "SET" if self.llm is not None else "MISSING"
        return status

    async def extract_structured(self, file_bytes: bytes) -> RawExtraction | None:
        text = await self.text_backend.extract_text(file_bytes)
        if not has_readable_text(text):
            logger.warning("Not enough OCR text for the AI parser", characters=len(text))
            return None

        try:
            payload = await self.llm.complete_json(EXTRACTION_PROMPT, text)
        except LLMError as e:
            # same OCR text goes to the text parser
            logger.warning(f"AI parser failed, falling back to text parsing: {e}")
            return RawExtraction(kind="text", source=self.name, text=text)

        logger.info(
            "AI parser returned invoice payload",
            items=len(payload.get("line_items") or []),
        )
        return RawExtraction(kind="ai_json", source=self.name, payload=payload, text=text)

    async def extract_text(self, file_bytes: bytes) -> str:
        return await self.text_backend.extract_text(file_bytes)
