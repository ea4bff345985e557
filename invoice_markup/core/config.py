
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-markup-service", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Azure Document Intelligence
    az_di_endpoint: str | None = Field(default=None, alias="AZ_DI_ENDPOINT")
    az_di_api_key: str | None = Field(default=None, alias="AZ_DI_API_KEY")
    az_di_locale: str = Field("en-AU", alias="AZ_DI_LOCALE")

    # LLM (optional) - Azure OpenAI chat completions
    llm_base_url: str | None = Field(default=None, alias="LLM_BASE_URL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_deployment: str | None = Field(default=None, alias="LLM_DEPLOYMENT")
    llm_api_version: str = Field("2024-06-01", alias="LLM_API_VERSION")

    # Remote categorisation (falls back to local rules on any failure)
    enhancement_enabled: bool = Field(True, alias="ENHANCEMENT_ENABLED")
    enhancement_timeout_seconds: float = Field(30.0, alias="ENHANCEMENT_TIMEOUT_SECONDS")

    # Extraction
    default_provider: str = Field("azure", alias="DEFAULT_PROVIDER")
    strict_credentials: bool = Field(False, alias="STRICT_CREDENTIALS")

    # Pricing rules
    gst_rate: float = Field(0.10, alias="GST_RATE")
    markup_organic: float = Field(0.45, alias="MARKUP_ORGANIC")
    markup_supplements: float = Field(0.50, alias="MARKUP_SUPPLEMENTS")
    markup_bulk: float = Field(0.35, alias="MARKUP_BULK")
    markup_cosmetics: float = Field(0.55, alias="MARKUP_COSMETICS")
    markup_groceries: float = Field(0.40, alias="MARKUP_GROCERIES")

    # CORS allowed origins (comma-separated list, "*" for any)
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    @field_validator("gst_rate")
    @classmethod
    def _check_gst_rate(cls, value: float) -> float:
        if not 0 <= value < 1:
            raise ValueError("GST_RATE must be a fraction between 0 and 1")
        return value

    @field_validator(
        "markup_organic", "markup_supplements", "markup_bulk", "markup_cosmetics", "markup_groceries"
    )
    @classmethod
    def _check_markup(cls, value: float) -> float:
        if value < 0:
            raise ValueError("markups cannot be negative")
        return value

    @property
    def azure_configured(self) -> bool:
        return bool(self.az_di_endpoint and self.az_di_api_key)

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_base_url and self.llm_api_key and self.llm_deployment)

    def markup_rules(self) -> dict[str, float]:
        """Category -> markup fraction, in classification order."""
        return {
            "Organic": self.markup_organic,
            "Supplements": self.markup_supplements,
            "Bulk": self.markup_bulk,
            "Cosmetics": self.markup_cosmetics,
            "Groceries": self.markup_groceries,
        }

    def credential_status(self) -> dict[str, dict[str, str]]:
        """Presence of each credential, never the value."""
        def flag(value):
            return "SET" if value else "MISSING"

        return {
            "azure_document_intelligence": {
                "endpoint": flag(self.az_di_endpoint),
                "key": flag(self.az_di_api_key),
            },
            "llm": {
                "base_url": flag(self.llm_base_url),
                "key": flag(self.llm_api_key),
                "deployment": flag(self.llm_deployment),
            },
        }

settings = Settings()
