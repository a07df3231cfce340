from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import uvicorn

from amoportal.config import Settings
from webapp.server import create_app

CONFIG_PATH = Path("config/settings.yaml")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


async def setup_logging(settings: Settings) -> None:
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if settings.logging.file:
        settings.logging.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.logging.file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)

    for noisy in ("discord.gateway", "discord.http"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def serve(settings: Settings) -> None:
    await setup_logging(settings)

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(settings),
            host=settings.webapp.host,
            port=settings.webapp.port,
            log_config=None,
        )
    )
    logging.info("Application portal listening on %s:%s", settings.webapp.host, settings.webapp.port)
    await server.serve()


async def main() -> None:
    config_path = CONFIG_PATH if CONFIG_PATH.exists() else Path("config/settings.example.yaml")
    settings = Settings.load(config_path)
    await serve(settings)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
