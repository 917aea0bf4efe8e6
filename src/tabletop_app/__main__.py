import logging

import uvicorn

from .main import app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = app.state.settings
    logger.info("now listening on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
