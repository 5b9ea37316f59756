from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from contentflow.api.routes import router as api_router
from contentflow.celery_config import celery_app
from contentflow.cms.sanity_store import SanityContentStore
from contentflow.config import configure_logging, get_settings
from contentflow.workers.storage import SummaryStorage

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan_context(app: FastAPI):
    store = None
    if settings.sanity.is_configured():
        store = SanityContentStore(settings.sanity)
        app.state.summary_storage = SummaryStorage(store)
        logger.info(
            "Initialized content store",
            extra={"provider": store.provider_name, "dataset": settings.sanity.dataset},
        )
    else:
        logger.warning("Content store not configured; summary lookups are unavailable")

    app.state.celery = celery_app

    try:
        yield
    finally:
        if store is not None:
            store.close()


app = FastAPI(title="contentflow", version="0.1.0", lifespan=lifespan_context)

app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": settings.service_name}


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "contentflow.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
        reload=settings.environment == "development",
    )
