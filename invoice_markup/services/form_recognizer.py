
from loguru import logger
from starlette.concurrency import run_in_threadpool
from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from .invoice_types import RawExtraction
from ..core.logging import describe_endpoint

INVOICE_MODEL = "prebuilt-invoice"
READ_MODEL = "prebuilt-read"


class AzureDocumentIntelligenceBackend:
    """Azure Document Intelligence as an OCR backend.

    With structured=True the prebuilt-invoice model is offered for
    structured extraction; prebuilt-read always serves plain text.
    The SDK pollers block, so every call runs in the threadpool.
    """

    def __init__(
        self,
        endpoint: str | None,
        api_key: str | None,
        locale: str = "en-AU",
        structured: bool = True,
        client=None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.locale = locale
        self.supports_structured = structured
        self.name = "azure" if structured else "azure-read"
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.endpoint and self.api_key)

    def missing_credentials(self) -> dict[str, str]:
        return {
            "endpoint": "SET" if self.endpoint else "MISSING",
            "key": "SET" if self.api_key else "MISSING",
        }

    @property
    def client(self) -> DocumentIntelligenceClient:
        if self._client is None:
            self._client = DocumentIntelligenceClient(
                endpoint=self.endpoint,
                credential=AzureKeyCredential(self.api_key)
            )
        return self._client

    def _analyze(self, model_id: str, file_bytes: bytes, **kwargs):
        logger.info(
            f"Analyzing document of size {len(file_bytes)} bytes",
            model=model_id,
            endpoint=describe_endpoint(self.endpoint),
        )
        poller = self.client.begin_analyze_document(
            model_id,
            body=file_bytes,
            content_type="application/octet-stream",
            **kwargs
        )
        return poller.result()

    async def extract_structured(self, file_bytes: bytes) -> RawExtraction | None:
        """prebuilt-invoice fields of the first document, or None when no invoice was found."""
        result = await run_in_threadpool(self._analyze, INVOICE_MODEL, file_bytes, locale=self.locale)

        if not result.documents:
            logger.warning(
                "Azure DI prebuilt-invoice model found no structured invoice data"
            )
            return None

        doc = result.documents[0]
        fields = doc.as_dict().get("fields") or {}
        logger.info(
            "Invoice model successful",
            documents=len(result.documents),
            fields=len(fields),
            confidence=doc.confidence,
        )
        return RawExtraction(
            kind="azure_fields",
            source=self.name,
            fields=fields,
            text=result.content or "",
            confidence=doc.confidence or 0.0,
        )

    async def extract_text(self, file_bytes: bytes) -> str:
        result = await run_in_threadpool(self._analyze, READ_MODEL, file_bytes)
        content = result.content or ""
        logger.info(f"Text extraction returned {len(content)} characters", model=READ_MODEL)
        return content
