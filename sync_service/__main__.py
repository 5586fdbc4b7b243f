"""
Entry point for running the service with `python -m sync_service`.
"""
import uvicorn

from sync_service.logging_config import setup_logging
from sync_service.settings import get_settings

if __name__ == "__main__":
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run("sync_service.main:create_app", factory=True, host="127.0.0.1", port=8010)
