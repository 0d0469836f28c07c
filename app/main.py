import logging
from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.config import get_settings
from app.api.slack_routes import router as slack_router
from app.core.tasks import get_task_runner

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def log_configuration() -> None:
    if settings.is_production:
        logger.info("[ENV] Environment: production (skipping detailed logs)")
        return

    logger.info(f"[ENV] AI_API_URL is set: {bool(settings.ai_api_url)}")
    logger.info(f"[ENV] AI_API_KEY is set: {bool(settings.ai_api_key)}")
    logger.info(f"[ENV] SLACK_SIGNING_SECRET is set: {bool(settings.slack_signing_secret)}")
    logger.info(f"[ENV] SLACK_BOT_TOKEN is set: {bool(settings.slack_bot_token)}")
    logger.info(f"[ENV] VERBOSE_LOGGING: {'enabled' if settings.verbose else 'disabled'}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Slack AI relay...")
    log_configuration()

    yield

    logger.info("Shutting down Slack AI relay...")
    await get_task_runner().drain(timeout=30.0)

app = FastAPI(
    title="Slack AI Relay",
    description="Relays Slack questions and summaries to an AI pipeline API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(slack_router)

@app.get("/")
async def root():
    return {
        "message": "Slack AI Relay API",
        "version": "1.0.0",
        "endpoints": {
            "slack_webhook": "/slack",
            "health": "/health"
        }
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "slack-ai-relay",
        "version": "1.0.0"
    }

@app.get("/test")
async def test_route():
    # Diagnostics route, hidden in production
    if get_settings().is_production:
        logger.warning("[SECURITY] Test route accessed in production")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    logger.info("[TEST] Received /test request")
    return {
        "status": "ok",
        "environment": get_settings().environment
    }

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
