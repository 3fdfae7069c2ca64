from datetime import datetime, timezone

from fastapi import APIRouter

from bolgen.config import settings
from bolgen.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    # OCR and extraction both go through the Anthropic API
    llm_status = "configured" if settings.anthropic_api_key else "unconfigured"
    overall = "healthy" if llm_status == "configured" else "degraded"

    return HealthResponse(
        status=overall,
        ocr=llm_status,
        llm=llm_status,
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        version=settings.app_version,
    )
