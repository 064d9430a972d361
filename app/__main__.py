"""
Run the API server:

  python -m app

Shutdown waits SHUTDOWN_GRACE_SECONDS for in-flight requests, then closes.
"""

import sys

import uvicorn
from dotenv import load_dotenv

from app.core.config import get_settings


def main() -> int:
    load_dotenv()
    settings = get_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
        proxy_headers=True,
        access_log=False,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
