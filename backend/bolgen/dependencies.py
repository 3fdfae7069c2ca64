from fastapi import Depends, HTTPException, Request

from bolgen.config import settings
from bolgen.document_extractor.parser import DocumentParser
from bolgen.document_extractor.pipeline import BOLPipeline
from bolgen.renderer import PDFRenderer
from bolgen.services.claude_service import ClaudeService
from bolgen.services.rate_limiter import RateLimiter, client_key

CONFIGURATION_ERROR = "Service configuration error. Please contact support."
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."


def get_claude_service() -> ClaudeService:
    if not settings.anthropic_api_key:
        raise HTTPException(status_code=503, detail=CONFIGURATION_ERROR)
    return ClaudeService(settings)


def get_bol_pipeline(claude_service: ClaudeService = Depends(get_claude_service)) -> BOLPipeline:
    return BOLPipeline(
        settings,
        text_extractor=DocumentParser(claude_service, scanned_threshold=settings.scanned_page_threshold),
        structured_extractor=claude_service,
        renderer=PDFRenderer(),
    )


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> str:
    """Count this request against its client; 429 once the window is used up."""
    key = client_key(
        request.headers.get("x-forwarded-for"),
        request.client.host if request.client else None,
    )
    if not limiter.hit(key):
        raise HTTPException(
            status_code=429,
            detail=RATE_LIMIT_MESSAGE,
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
    return key
