"""
Main entrypoint: FastAPI server for the decision engine.

Loads .env, prints which credentials are configured (masked), then serves the
API. Sources whose credential is missing are simply not built.

Env: PERSPECTIVE_API_KEY, HUGGINGFACE_API_KEY, GOOGLE_CLOUD_API_KEY,
AZURE_TEXT_ANALYTICS_KEY/ENDPOINT, MODGUARD_CONFIG_PATH, MODGUARD_DISABLED_SOURCES,
API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_modguard.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_modguard.modguard_logging import configure_structlog, get_logger

logger = get_logger("main")


def main() -> None:
    """Validate settings up front, then run the API server in the main thread."""
    from backend_modguard.config.env import load_modguard_env, print_modguard_startup
    from backend_modguard.config.settings import get_settings
    from backend_modguard.core.exceptions import ConfigValidationError

    load_modguard_env()
    configure_structlog(os.getenv("LOG_LEVEL"), os.getenv("LOG_FORMAT"))
    print_modguard_startup("main")

    api_host = os.getenv("API_HOST", "0.0.0.0").strip()
    api_port = int(os.getenv("API_PORT", "8000").strip() or "8000")

    try:
        settings = get_settings()
    except ConfigValidationError as e:
        logger.error("main_config_error", message=str(e))
        raise SystemExit(1) from e
    logger.info("main_settings_ready", sources=settings.source_names())

    from backend_modguard.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=api_host, port=api_port)
    uvicorn.run(app, host=api_host, port=api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
