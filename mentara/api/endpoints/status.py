from fastapi import APIRouter, Depends
from typing import Dict, Any
from mentara.core.security import require_roles
from mentara.api.services.ai_services import ResponseGenerator, get_response_generator

router = APIRouter()

@router.get("/api-status")
async def get_api_status(generator: ResponseGenerator = Depends(get_response_generator)) -> Dict[str, Any]:
    """
    Get current Gemini status and usage statistics

    Returns information about:
    - API key configuration status
    - Current rate limiting status
    - Token usage statistics
    - Cache size and backoff status
    """
    try:
        status = generator.gemini_service.get_api_status()

        return {
            "success": True,
            "status": status,
            "message": "API status retrieved successfully"
        }

    except Exception as e:
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to retrieve API status"
        }

@router.post("/reset-rate-limits", dependencies=[Depends(require_roles("admin"))])
async def reset_rate_limits(generator: ResponseGenerator = Depends(get_response_generator)) -> Dict[str, Any]:
    """
    Reset rate limiting counters (admin only)

    WARNING: intended for development environments
    """
    generator.gemini_service.reset_rate_limits()

    return {
        "success": True,
        "message": "Rate limits reset successfully",
        "warning": "This should only be used in development"
    }
