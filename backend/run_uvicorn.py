"""Development launcher for Uvicorn that ensures logging is configured before reload workers start."""

from __future__ import annotations

import uvicorn

from common.core.config_service import config_service
from common.logging.setup_logging import setup_logging


def main() -> None:
    """Configure logging and delegate to uvicorn.run."""
    setup_logging()
    uvicorn.run(
        "app.main:app",
        host=config_service.get("host", "0.0.0.0"),
        port=int(config_service.get("port", 9998)),
        reload=True,
        reload_dirs=[".", "../libs"],  # Watch current dir (backend) and libs
    )


if __name__ == "__main__":
    main()
