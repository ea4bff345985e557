"""
Exceptions raised while processing an uploaded invoice.

Only ConfigurationError and UploadError ever reach the HTTP caller.
ExtractionError, EnhancementError and LLMError are raised inside the pipeline and
recovered by its fallbacks (plain-text OCR, placeholder invoice, local
pricing rules).

    InvoiceProcessingError
    ├── ConfigurationError
    ├── UploadError
    │   └── UnsupportedProviderError
    ├── ExtractionError
    ├── EnhancementError
    └── LLMError
"""


class InvoiceProcessingError(Exception):
    """Base error; carries the HTTP status it maps to and optional details."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigurationError(InvoiceProcessingError):
    """Required credentials are absent. `debug` says which ones."""

    status_code = 500

    def __init__(self, message: str, debug: dict | None = None):
        super().__init__(message, details="Check the service environment configuration")
        self.debug = debug or {}


class UploadError(InvoiceProcessingError):
    status_code = 400


class UnsupportedProviderError(UploadError):
    def __init__(self, provider: str, supported: list[str]):
        super().__init__(
            f"Unsupported provider: {provider}",
            details=f"Supported providers: {', '.join(supported)}",
        )
        self.provider = provider


class ExtractionError(InvoiceProcessingError):
    pass


class EnhancementError(InvoiceProcessingError):
    pass


class LLMError(InvoiceProcessingError):
    """The chat completion call failed or did not return a JSON object."""
