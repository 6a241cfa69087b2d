"""
Thin API route for /ask endpoint.

No business logic: validates the request, calls orchestrator.answer(),
and maps pipeline failures onto HTTP errors.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from assistant.core.errors import ConfigurationError, ProviderTransportError, StageTimeoutError
from assistant.pipeline.orchestrator import answer
from assistant.schemas.llm import CitedAnswer
from assistant.schemas.pipeline import AnswerContext
from assistant.schemas.response import AskRequest, AskResponse
from assistant.services.retrieval import Retriever
from assistant.utils.logging import get_logger

logger = get_logger("assistant.api.ask")

router = APIRouter(tags=["Ask"])


def get_retriever(request: Request) -> Retriever:
    """Retriever registered on the application at startup."""
    return request.app.state.retriever


@router.post("/ask", response_model=AskResponse)
async def ask_question(
    request: AskRequest,
    retriever: Retriever = Depends(get_retriever),
):
    q = request.question.strip()[:80]
    logger.info("[ASK] New question (%s): %s%s", request.mode.value, q, "..." if len(request.question) > 80 else "")

    try:
        result = await answer(
            request.question,
            request.history,
            request.mode,
            request.databases,
            retriever=retriever,
            context=AnswerContext(
                workspace_name=request.workspace_name,
                user_name=request.user_name,
                user_email=request.user_email,
            ),
        )
    except ConfigurationError as e:
        logger.warning("[ASK] Assistant not configured: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"The assistant is not configured: {e}",
        )
    except (ProviderTransportError, StageTimeoutError) as e:
        logger.error("[ASK] Could not complete: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The assistant could not complete this request. Please try again.",
        )
    except Exception as e:
        logger.error("[ASK] Error: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing question.",
        )

    if isinstance(result, CitedAnswer):
        return AskResponse(answer=result.answer, citations=result.citations, mode=request.mode)
    return AskResponse(answer=result, mode=request.mode)
