"""Main entry point for the synthetic traffic simulator."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from traffic_core.api import create_fastapi_app
from traffic_core.app import Application
from traffic_core.config import Settings
from traffic_core.logging_config import setup_logging


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent
    load_dotenv(project_root / ".env")

    settings = Settings.from_env()
    settings.validate()
    setup_logging(settings.log_level, settings.log_file)

    app = create_fastapi_app(Application(settings))

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
