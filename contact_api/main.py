#run it with uvicorn contact_api.main:app --reload
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

# Load environment variables from .env file
load_dotenv()

from contact_api.api.api_router import api_router
from contact_api.core.config import Settings, get_settings
from contact_api.core.errors import ConfigurationError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def check_configuration(settings):
    """Log which delivery channels are configured; raise in strict mode"""
    problems = []
    for channel, resolve in (("spreadsheet", settings.spreadsheet_config), ("email", settings.smtp_config)):
        try:
            resolve()
            logger.info(f"✅ {channel} channel configured")
        except ConfigurationError as e:
            logger.warning(f"⚠️ {channel} channel not configured: {e.message}")
            problems.append(e.message)

    if problems and settings.strict_config:
        raise ConfigurationError("; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting contact service...")
    check_configuration(get_settings())
    yield
    logger.info("Contact service shut down")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Contact Submission Service", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/api/health")
    def health_check(settings: Settings = Depends(get_settings)):
        """
        Health check endpoint.

        Reports only whether each delivery channel has complete
        configuration, never the values themselves.
        """
        return {
            "status": "ok",
            "channels": settings.channel_status(),
        }

    return app


app = create_app()
