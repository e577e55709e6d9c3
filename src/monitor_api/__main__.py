"""
Run the monitor backend.

Usage:
    python -m src.monitor_api

    # Or use uvicorn directly:
    uvicorn src.monitor_api.main:app --host 0.0.0.0 --port 8888
"""

import uvicorn

from src.monitor_api.config import load_config


def main() -> None:
    """Serve the FastAPI app on MONITOR_HOST:MONITOR_PORT."""
    cfg = load_config()
    uvicorn.run(
        "src.monitor_api.main:app",
        host=cfg.host,
        port=cfg.port,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
