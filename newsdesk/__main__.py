"""Run the development server: ``python -m newsdesk``."""
import logging

import uvicorn

from newsdesk.config import settings

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    uvicorn.run(
        "newsdesk.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
