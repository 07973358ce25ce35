import logging
import sys

import pydantic
import uvicorn

from railcast.config import get_settings

logger = logging.getLogger("railcast")


def main() -> int:
    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", e)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "railcast.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
