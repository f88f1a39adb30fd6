from fastapi import APIRouter, Depends

from app.api.dependencies import get_knowledge
from app.features.knowledge.service import KnowledgeService

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(knowledge: KnowledgeService = Depends(get_knowledge)):
    """Health endpoint for monitoring: provider configuration and scheduler state."""
    return {"status": "healthy", **knowledge.health_check()}
