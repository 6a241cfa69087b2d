"""
Health check endpoint for monitoring.
"""

from __future__ import annotations

from fastapi import APIRouter

from assistant.core.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Basic health check."""
    settings = get_settings()
    return {
        "status": "ok",
        "service": "assistant",
        "ai_enabled": settings.ai_enabled,
        "deep_search_enabled": settings.deep_search_enabled,
    }
