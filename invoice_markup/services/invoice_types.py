
from typing import Any, Literal
from pydantic import BaseModel

RawKind = Literal["azure_fields", "ai_json", "text"]


class RawExtraction(BaseModel):
    """What a backend produced, before normalisation into an Invoice.

    azure_fields: prebuilt-invoice document fields in REST shape
                  ({"VendorName": {"content": ...}, "Items": {"valueArray": [...]}})
    ai_json:      LLM payload ({"supplier": ..., "line_items": [...]})
    text:         flat OCR text
    """
    kind: RawKind
    source: str
    fields: dict[str, Any] | None = None
    payload: dict[str, Any] | None = None
    text: str | None = None
    confidence: float = 0.0

    model_config = {"frozen": True}
