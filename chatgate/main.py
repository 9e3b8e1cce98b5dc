"""
FastAPI service for chatgate.

Access and usage admission control for the chat application:
- Resolve and verify callers against the identity provider
- Enforce per-identity daily interaction quotas
- Admin console sessions and their retention cleanup

Usage:
    uvicorn chatgate.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
import os

from dotenv import load_dotenv

# Load environment variables before importing anything else
load_dotenv()

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from chatgate import __version__
from chatgate.api import create_app

app = create_app()

logger.info(f"chatgate v{__version__} initialized")


if __name__ == "__main__":
    import uvicorn

    from chatgate.utils.env_utils import parse_bool_env, parse_int_env

    host = os.getenv("API_HOST", "0.0.0.0")
    port = parse_int_env("API_PORT", 8000)
    reload = parse_bool_env("DEBUG", False)

    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "chatgate.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )
