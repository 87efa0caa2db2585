import structlog
import uvicorn

from civicrag.api import build_services, create_app
from civicrag.config import load_config
from civicrag.util.logging import configure_logging

_logger = structlog.get_logger()


def main() -> None:
    config = load_config()
    configure_logging(json_output=config.logging.json_output, log_level=config.logging.log_level)

    app = create_app(build_services(config))
    _logger.info("server_starting", host=config.server.host, port=config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)


if __name__ == "__main__":
    main()
