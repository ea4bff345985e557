
from ..core.config import Settings, settings
from ..services.pipeline import InvoicePipeline, create_pipeline


def get_settings() -> Settings:
    return settings


def get_pipeline() -> InvoicePipeline:
    """Request-scoped pipeline built from the process settings.

    Tests override this with app.dependency_overrides to inject fake backends.
    """
    return create_pipeline(get_settings())
