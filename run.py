"""Entry point for serving the League Registration API.

Host and port are read from ``API_HOST`` and ``API_PORT`` (defaults
``0.0.0.0`` and ``8000``); everything else comes from the environment
as described in ``core/config.py``.

Usage:
    python run.py
"""

import asyncio

from uvicorn import Config, Server

from league_registration_api.app.core.config import settings
from league_registration_api.app.main import app


async def main() -> None:
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
