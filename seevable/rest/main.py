import logging.config
import yaml
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from seevable.chat.config import Config
from seevable.rest.routers import threads, messages, chat, providers


DEFAULT_LOG_DIR = "logs"


def setup_logging(log_dir: str = None):
    """
    Configure logging from logging_config.yaml. The rotating file handler
    writes into SEEVA_LOG_DIR (default ./logs relative to the working dir).
    """
    log_dir = log_dir or os.getenv("SEEVA_LOG_DIR", DEFAULT_LOG_DIR)
    config_path = os.path.join(os.path.dirname(__file__), "logging_config.yaml")
    if not os.path.exists(config_path):
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
        )
        logging.warning(f"Logging configuration file not found at {config_path}, using default configuration")
        return

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    os.makedirs(log_dir, exist_ok=True)
    config["handlers"]["file"]["filename"] = os.path.join(log_dir, "seeva.log")
    logging.config.dictConfig(config)

setup_logging()
LOGGER = logging.getLogger(__name__)

app = FastAPI(
    title="Seeva AI REST API",
    description="Streaming chat gateway over Anthropic, OpenAI and OpenRouter",
    version="1.0.0"
)

origins = Config.config().get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

LOGGER.info(f"CORSMiddleware added with origins: {origins}")

app.include_router(threads.router)
app.include_router(messages.router)
app.include_router(chat.router)
app.include_router(providers.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
