from fastapi import APIRouter

from app.api.routes import health, knowledge


router = APIRouter()

router.include_router(knowledge.router)
router.include_router(health.router)
