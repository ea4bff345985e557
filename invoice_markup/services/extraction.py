"""
Provider selection and the extraction fallback chain.

    structured model ──(no documents / error)──> plain-text OCR ──(error / no text)──> placeholder

Each backend implements the OCRBackend interface below. The adapter never
lets a backend failure escape: the caller always gets a well-formed Invoice.
"""

from typing import Protocol
from loguru import logger
from .invoice_types import RawExtraction
from .invoice_mapper import map_ai_payload, map_invoice_fields
from .text_parser import TextParser, has_readable_text, parse_invoice_text, parse_line_items
from ..core.errors import ConfigurationError, ExtractionError, UnsupportedProviderError
from ..models.invoice import DEFAULT_GST_RATE, Invoice, UploadedFile


class OCRBackend(Protocol):
    name: str
    supports_structured: bool

    def is_configured(self) -> bool: ...

    def missing_credentials(self) -> dict[str, str]: ...

    async def extract_structured(self, file_bytes: bytes) -> RawExtraction | None: ...

    async def extract_text(self, file_bytes: bytes) -> str: ...


class ExtractionAdapter:
    def __init__(
        self,
        backends: dict[str, OCRBackend],
        default_provider: str = "azure",
        gst_rate: float = DEFAULT_GST_RATE,
        strict_credentials: bool = False,
        text_parser: TextParser = parse_line_items,
    ):
        self.backends = backends
        self.default_provider = default_provider
        self.gst_rate = gst_rate
        self.strict_credentials = strict_credentials
        self.text_parser = text_parser

    @property
    def providers(self) -> list[str]:
        return sorted(self.backends)

    def backend_for(self, provider: str | None) -> OCRBackend:
        key = (provider or self.default_provider).strip().lower()
        if key not in self.backends:
            raise UnsupportedProviderError(key, self.providers)
        return self.backends[key]

    def normalize(self, raw: RawExtraction) -> Invoice:
        if raw.kind == "azure_fields":
            return map_invoice_fields(raw.fields, self.gst_rate)
        if raw.kind == "ai_json":
            return map_ai_payload(raw.payload, self.gst_rate)
        return self.parse_text(raw.text or "")

    def parse_text(self, text: str) -> Invoice:
        return parse_invoice_text(text, self.gst_rate, parser=self.text_parser)

    async def extract(self, upload: UploadedFile, provider: str | None = None) -> Invoice:
        """Invoice for one upload. Only input and strict-mode configuration errors raise."""
        backend = self.backend_for(provider)
        logger.info(
            "Processing upload",
            filename=upload.filename,
            provider=backend.name,
            size=upload.size,
            content_type=upload.content_type,
        )

        if not backend.is_configured():
            status = backend.missing_credentials()
            message = f"{backend.name} backend credentials not configured"
            logger.error(message, **status)
            if self.strict_credentials:
                raise ConfigurationError(message, debug=status)
            flags = ", ".join(f"{k}: {v}" for k, v in status.items())
            return Invoice.placeholder(
                upload.filename,
                message,
                notes=[f"Extraction skipped - {message} ({flags})"],
            )

        try:
            if backend.supports_structured:
                invoice = await self._structured_or_text(backend, upload)
            else:
                invoice = await self._text(backend, upload)
        except Exception as e:
            logger.exception(f"{backend.name} extraction failed: {e}")
            return Invoice.placeholder(
                upload.filename,
                str(e),
                notes=[f"Extraction failed with {backend.name}: {e}"],
            )

        invoice.processing_notes.insert(0, f"Data extracted with {backend.name} ({invoice.extraction_method})")
        return invoice

    async def _structured_or_text(self, backend: OCRBackend, upload: UploadedFile) -> Invoice:
        try:
            raw = await backend.extract_structured(upload.data)
            if raw is None:
                raise ExtractionError("No invoice structure detected")
            return self.normalize(raw)
        except Exception as e:
            logger.warning(f"Structured extraction failed, trying basic text extraction: {e}")
        return await self._text(backend, upload)

    async def _text(self, backend: OCRBackend, upload: UploadedFile) -> Invoice:
        text = await backend.extract_text(upload.data)
        if not has_readable_text(text):
            raise ExtractionError("No readable text found in document")
        logger.info(f"Text extraction successful: {len(text)} characters")
        return self.parse_text(text)
