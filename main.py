from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv

from api.routes import duplication
from utils.logger import get_logger
from core.config import settings

load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting duplication-analyzer")
    settings.validate()

    config = settings.duplication_config()
    logger.info(f"Default preset '{settings.dedup_preset}': threshold={config.threshold}, "
                f"min_lines={config.min_lines}, scope={config.effective_scope.value}")

    yield
    logger.info("Shutting down duplication-analyzer")


app = FastAPI(
    title="Duplication Analyzer",
    description="Find near-duplicate code blocks and recommend how to consolidate them",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(duplication.router, prefix="/api", tags=["duplication"])


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "duplication-analyzer",
        "default_preset": settings.dedup_preset,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
