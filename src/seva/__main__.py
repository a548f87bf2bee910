"""Run the assistant server: ``python -m seva [--host HOST] [--port PORT]``."""

import argparse

import uvicorn

from seva.core.config import Settings
from seva.core.logger import get_logger, setup_logging
from seva.server import create_app

logger = get_logger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seva grievance assistant server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--env-file", default=None, help="Path of a .env file to load")
    args = parser.parse_args()

    settings = Settings.from_env(env_file=args.env_file)
    setup_logging(settings.log_level)
    logger.info(f"Serving on {args.host}:{args.port} with model '{settings.model_name}'")

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
