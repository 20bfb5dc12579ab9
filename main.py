"""
Main entrypoint: run the staking analytics API with uvicorn.

Env: PORT (default 3001), API_HOST, KILN_API_KEY, ETHERSCAN_API_KEY,
USE_MOCK_DATA, ETH_USD_PRICE, LOG_LEVEL, LOG_FORMAT. See backend_staking.config.

Equivalent: uvicorn backend_staking.api_server.app:app --host 0.0.0.0 --port 3001
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_staking.staking_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Resolve settings and run the FastAPI server in the main thread."""
    from backend_staking.config import get_settings

    settings = get_settings()
    if not settings.live_enabled:
        logger.warning(
            "main_synthetic_mode",
            message="KILN_API_KEY not set or USE_MOCK_DATA enabled: serving synthetic data",
        )

    from backend_staking.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.port)
    uvicorn.run(app, host=settings.api_host, port=settings.port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
