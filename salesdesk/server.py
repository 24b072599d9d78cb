"""
Salesdesk API - FastAPI Application

Serves the scheduling routes to the website assistant's conversational layer.

Usage:
    uvicorn salesdesk.server:app --host 127.0.0.1 --port 8090

    Or run directly:
    python -m salesdesk.server
"""

import os

# Load .env file before anything else
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI

from salesdesk import __version__
from salesdesk.logging_config import get_logger, setup_logging
from salesdesk.scheduling.routes import router as scheduling_router


logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Salesdesk API",
        description="Meeting scheduling for the website sales assistant",
        version=__version__,
    )

    app.include_router(scheduling_router, prefix="/scheduling", tags=["scheduling"])

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    setup_logging()
    host = os.environ.get("SALESDESK_HOST", "127.0.0.1")
    port = int(os.environ.get("SALESDESK_PORT", "8090"))
    logger.info("server_starting", host=host, port=port)
    uvicorn.run("salesdesk.server:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
