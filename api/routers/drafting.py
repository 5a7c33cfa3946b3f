from __future__ import annotations

from typing import List

import structlog
from fastapi import APIRouter, Depends

from api.auth import User, get_current_user
from api.composer.drafting import ContractDrafter, ContractSection
from api.llm.cached_provider import CachedGenerationProvider
from api.llm.gemini_provider import get_generation_provider
from api.models import DraftSectionsRequest, DraftTextResponse, RewriteSectionRequest, SuggestClauseRequest
from libs.caching import ResponseCache, get_redis_client
from libs.common.settings import get_settings

logger = structlog.get_logger(__name__)
router = APIRouter()


async def get_drafter() -> ContractDrafter:
    """Drafter on the shared provider, behind the Redis cache when it is enabled and reachable."""
    provider = get_generation_provider()
    settings = get_settings()
    if settings.cache_enabled:
        redis_client = await get_redis_client()
        if redis_client is not None:
            provider = CachedGenerationProvider(provider, ResponseCache(redis_client, default_ttl=settings.ai_cache_ttl))
    return ContractDrafter(provider)


@router.post("/v1/drafting/sections", response_model=List[ContractSection], tags=["Drafting"])
async def generate_sections(
    request: DraftSectionsRequest,
    current_user: User = Depends(get_current_user),
    drafter: ContractDrafter = Depends(get_drafter),
) -> List[ContractSection]:
    """Generate a section outline for a contract type."""
    logger.info("Generating contract sections", contract_type=request.contract_type, uid=current_user.uid)
    return await drafter.generate_contract_sections(request.contract_type, request.parties)


@router.post("/v1/drafting/rewrite", response_model=DraftTextResponse, tags=["Drafting"])
async def rewrite_section(
    request: RewriteSectionRequest,
    current_user: User = Depends(get_current_user),
    drafter: ContractDrafter = Depends(get_drafter),
) -> DraftTextResponse:
    """Rewrite a section in another style; returns the input unchanged if generation fails."""
    return DraftTextResponse(text=await drafter.rewrite_section(request.content, request.style))


@router.post("/v1/drafting/clause", response_model=DraftTextResponse, tags=["Drafting"])
async def suggest_clause(
    request: SuggestClauseRequest,
    current_user: User = Depends(get_current_user),
    drafter: ContractDrafter = Depends(get_drafter),
) -> DraftTextResponse:
    """Suggest a clause of the given type for a contract context."""
    return DraftTextResponse(text=await drafter.suggest_clause(request.context, request.clause_type))
