from app.features.knowledge.service import KnowledgeService, get_knowledge_service


def get_knowledge() -> KnowledgeService:
    """Provide the singleton knowledge service for request handlers."""
    return get_knowledge_service()
