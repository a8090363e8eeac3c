"""
System model service launcher.

Usage:
    python -m system_model --host 0.0.0.0 --port 8080

Settings not given on the command line come from the environment (see
``system_model.infrastructure.config``).
"""

import argparse
import logging

import uvicorn

from system_model.infrastructure.config import BACKENDS, AppConfig
from system_model.infrastructure.container import TopologyContainer
from system_model.infrastructure.monitoring import setup_structured_logging
from system_model.interfaces.api import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    config = AppConfig.from_env()

    parser = argparse.ArgumentParser(description="Run the system model topology service")
    parser.add_argument("--host", default=config.server.host)
    parser.add_argument("--port", type=int, default=config.server.port)
    parser.add_argument("--backend", choices=BACKENDS, default=config.store.backend)
    args = parser.parse_args()

    config.server.host = args.host
    config.server.port = args.port
    config.store.backend = args.backend
    config.validate()

    setup_structured_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
    )
    logger.info(f"API address: {config.server.host}:{config.server.port}")

    app = create_app(TopologyContainer(config))
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)


if __name__ == "__main__":
    main()
