"""
Main entrypoint: MoltID API server.

The score refresh worker runs inside the app lifespan (daemon thread), so this
only resolves settings and hands the app to uvicorn.

Env: MOLTID_DB_URL / DATABASE_PATH, MOLTBOOK_API_URL, SCORE_REFRESH_INTERVAL_SEC, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_moltid.api_server.app:app --host 0.0.0.0 --port 8000
"""

# Configure structured JSON logging before other imports that may log
from backend_moltid.moltid_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    from backend_moltid.api_server.app import app
    from backend_moltid.config import get_settings
    from backend_moltid.config.env import mask_database_url
    import uvicorn

    settings = get_settings()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        database=mask_database_url(settings.database_url),
        score_refresh_interval_sec=settings.score_refresh_interval_sec,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
