
from loguru import logger
from .ai_parser import AIInvoiceParserBackend
from .enhancement import RemoteEnhancer, enhance_invoice
from .extraction import ExtractionAdapter
from .form_recognizer import AzureDocumentIntelligenceBackend
from .formatter import format_for_ui
from .llm import LLMClient
from .pricing_rules import InvoicePricingRules, create_pricing_rules
from ..core.config import Settings
from ..models.invoice import Invoice, UploadedFile
from ..models.responses import ProcessInvoiceResponse


class InvoicePipeline:
    """upload -> extract -> (optionally enhance) -> format, one straight line per request."""

    def __init__(
        self,
        adapter: ExtractionAdapter,
        rules: InvoicePricingRules,
        enhancer: RemoteEnhancer | None = None,
    ):
        self.adapter = adapter
        self.rules = rules
        self.enhancer = enhancer

    async def extract(self, upload: UploadedFile, provider: str | None = None) -> Invoice:
        return await self.adapter.extract(upload, provider)

    async def process(
        self,
        upload: UploadedFile,
        provider: str | None = None,
        enhance: bool = True,
    ) -> ProcessInvoiceResponse:
        invoice = await self.extract(upload, provider)
        if enhance:
            invoice = await enhance_invoice(invoice, self.rules, self.enhancer)
        result = format_for_ui(invoice)

        logger.info(
            "Processing complete",
            supplier=result.supplier,
            items=result.summary.total_items,
            total_cost=result.summary.total_cost,
        )
        return result


def create_pipeline(settings: Settings) -> InvoicePipeline:
    """Wire backends, rules and the optional enhancer from one Settings value."""
    azure = AzureDocumentIntelligenceBackend(
        settings.az_di_endpoint,
        settings.az_di_api_key,
        locale=settings.az_di_locale,
    )
    azure_read = AzureDocumentIntelligenceBackend(
        settings.az_di_endpoint,
        settings.az_di_api_key,
        locale=settings.az_di_locale,
        structured=False,
    )

    llm = None
    if settings.llm_configured:
        llm = LLMClient(
            settings.llm_base_url,
            settings.llm_api_key,
            settings.llm_deployment,
            api_version=settings.llm_api_version,
            timeout=settings.enhancement_timeout_seconds,
        )

    backends = {
        azure.name: azure,
        azure_read.name: azure_read,
        AIInvoiceParserBackend.name: AIInvoiceParserBackend(llm, azure_read),
    }
    adapter = ExtractionAdapter(
        backends,
        default_provider=settings.default_provider,
        gst_rate=settings.gst_rate,
        strict_credentials=settings.strict_credentials,
    )

    enhancer = RemoteEnhancer(llm) if llm is not None and settings.enhancement_enabled else None
    return InvoicePipeline(adapter, create_pricing_rules(settings=settings), enhancer)


def log_configuration(settings: Settings) -> None:
    """Startup check: warn once about each missing credential group."""
    if not settings.azure_configured:
        logger.warning(
            "Azure Document Intelligence not configured - uploads will return placeholder results. "
            "Set AZ_DI_ENDPOINT and AZ_DI_API_KEY to use real extraction.",
            **settings.credential_status()["azure_document_intelligence"]
        )
    if not settings.llm_configured:
        logger.info(
            "LLM not configured - AI parser unavailable and local pricing rules only",
            **settings.credential_status()["llm"]
        )
