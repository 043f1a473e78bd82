"""
AI assistant routes: schedule analysis, dashboard and report insights, and chat.

Metrics are aggregated here from the organization's data before the model
sees them; clients never send their own numbers.
"""
from datetime import datetime, timezone
from typing import Annotated
import openai
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.core.rate_limit import limiter
from app.features.organizations.dependencies import require_schedule_manager
from app.features.organizations.resolver import ActiveOrgContext
from app.features.ai.provider import ChatTurn, LLMProviderBase, LLMResponse, get_llm_provider
from app.features.ai.prompts import build_prompt
from app.features.ai.insights import build_dashboard_prompt, build_report_prompt
from app.features.ai.chat import CHAT_MAX_TOKENS, MAX_CHAT_HISTORY, build_chat_system
from app.features.ai.schemas import (
    ChatRequest,
    ChatResponse,
    DashboardInsightRequest,
    DashboardInsightResponse,
    ReportInsightRequest,
    ReportInsightResponse,
    ScheduleAssistRequest,
    ScheduleAssistResponse,
)
from app.features.ai.service import (
    load_chat_context,
    load_dashboard_metrics,
    load_report_metrics,
    load_schedule_snapshot,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["ai"])


def require_llm_provider(
    provider: Annotated[LLMProviderBase | None, Depends(get_llm_provider)]
) -> LLMProviderBase:
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI features are not configured"
        )
    return provider


async def ask_model(
    provider: LLMProviderBase,
    organization_id: str,
    prompt: str,
    system: str,
    max_tokens: int = 1500,
    history: list[ChatTurn] | None = None,
) -> LLMResponse:
    """Call the model, mapping provider failures to 429 and 502."""
    try:
        return await provider.generate(prompt, system=system, max_tokens=max_tokens, history=history)
    except openai.RateLimitError:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="AI rate limit exceeded. Please try again later."
        )
    except openai.OpenAIError as e:
        log.error("AI request for %s failed: %s", organization_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to get AI response"
        )


@router.post("/schedule", response_model=ScheduleAssistResponse)
@limiter.limit(config.AI_RATE_LIMIT)
async def schedule_assistant(
    request: Request,
    request_data: ScheduleAssistRequest,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    provider: Annotated[LLMProviderBase, Depends(require_llm_provider)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Ask the language model about the schedule between start and end.

    The answer is advisory text; no shift is changed.
    """
    snapshot = await load_schedule_snapshot(db, context.organization_id, request_data.start, request_data.end)
    try:
        system, prompt = build_prompt(request_data.action, snapshot, (request_data.prompt or "").strip())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = await ask_model(provider, context.organization_id, prompt, system)
    log.info("AI %s for %s used %s tokens", request_data.action.value, context.organization_id, response.tokens_used)
    return ScheduleAssistResponse(
        action=request_data.action,
        content=response.content,
        model=response.model,
        tokens_used=response.tokens_used,
    )


@router.post("/dashboard", response_model=DashboardInsightResponse)
@limiter.limit(config.AI_RATE_LIMIT)
async def dashboard_insights(
    request: Request,
    request_data: DashboardInsightRequest,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    provider: Annotated[LLMProviderBase, Depends(require_llm_provider)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Short insights, recommendations or alerts about the current week."""
    metrics = await load_dashboard_metrics(db, context.organization_id, datetime.now(timezone.utc))
    system, prompt, max_tokens = build_dashboard_prompt(request_data.action, metrics)

    response = await ask_model(provider, context.organization_id, prompt, system, max_tokens=max_tokens)
    log.info("AI dashboard %s for %s used %s tokens",
             request_data.action.value, context.organization_id, response.tokens_used)
    return DashboardInsightResponse(
        action=request_data.action,
        content=response.content,
        model=response.model,
        tokens_used=response.tokens_used,
        metrics=metrics,
    )


@router.post("/reports", response_model=ReportInsightResponse)
@limiter.limit(config.AI_RATE_LIMIT)
async def report_insights(
    request: Request,
    request_data: ReportInsightRequest,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    provider: Annotated[LLMProviderBase, Depends(require_llm_provider)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Analysis, recommendations, insights or a forecast for a date range."""
    metrics = await load_report_metrics(db, context.organization_id, request_data.start, request_data.end)
    system, prompt, max_tokens = build_report_prompt(request_data.action, metrics)

    response = await ask_model(provider, context.organization_id, prompt, system, max_tokens=max_tokens)
    log.info("AI report %s for %s used %s tokens",
             request_data.action.value, context.organization_id, response.tokens_used)
    return ReportInsightResponse(
        action=request_data.action,
        content=response.content,
        model=response.model,
        tokens_used=response.tokens_used,
        metrics=metrics,
    )


@router.post("/chat", response_model=ChatResponse)
@limiter.limit(config.AI_RATE_LIMIT)
async def chat(
    request: Request,
    request_data: ChatRequest,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    provider: Annotated[LLMProviderBase, Depends(require_llm_provider)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Answer a question about the organization.

    Only the last few turns of history are forwarded to the model.
    """
    chat_context = await load_chat_context(db, context.organization_id, datetime.now(timezone.utc))
    history = request_data.history[-MAX_CHAT_HISTORY:]

    response = await ask_model(
        provider,
        context.organization_id,
        request_data.message,
        build_chat_system(chat_context),
        max_tokens=CHAT_MAX_TOKENS,
        history=history,
    )
    log.info("AI chat for %s used %s tokens", context.organization_id, response.tokens_used)
    return ChatResponse(content=response.content, model=response.model, tokens_used=response.tokens_used)
