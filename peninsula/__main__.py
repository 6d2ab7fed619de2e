"""
Run the API server:

  python -m peninsula

Listens on HOST:PORT (default 0.0.0.0:4875).
"""

import logging

import uvicorn

from peninsula.core.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    uvicorn.run(
        "peninsula.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
