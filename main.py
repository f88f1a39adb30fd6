import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.endpoints import router
from app.core.config import settings
from app.core.tracing import instrument_app, instrument_httpx, setup_tracing, shutdown_tracing
from app.features.knowledge.service import get_knowledge_service
from app.shared.correlation import CorrelationMiddleware
from app.shared.logging_config import setup_logging

setup_logging(service_name=settings.SERVICE_NAME)
setup_tracing(service_name=settings.SERVICE_NAME)
instrument_httpx()

logger = logging.getLogger("Converse.Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = get_knowledge_service().scheduler
    if settings.ENRICHMENT_ENABLED:
        scheduler.start()
    else:
        logger.info("Knowledge enrichment disabled (ENRICHMENT_ENABLED=false)")
    yield
    await scheduler.stop()
    shutdown_tracing()


app = FastAPI(
    title="Converse Knowledge Service",
    description="Meeting knowledge retrieval and AI tools for conversational agents",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationMiddleware)
app.include_router(router, prefix="/api/v1")
instrument_app(app)


@app.get("/")
async def root():
    return {"message": "Converse Knowledge Service Running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
