
from fastapi import APIRouter, Depends
from ..deps import get_settings
from ...core.config import Settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "app": settings.app_name, "env": settings.app_env}


@router.get("/config")
async def config_status(settings: Settings = Depends(get_settings)):
    """Which credentials are present (SET / MISSING). Values are never returned."""
    status = settings.credential_status()
    status["azure_document_intelligence"]["key_length"] = len(settings.az_di_api_key or "")
    return {
        "credentials": status,
        "default_provider": settings.default_provider,
        "enhancement_enabled": settings.enhancement_enabled and settings.llm_configured,
        "strict_credentials": settings.strict_credentials,
    }
