"""Serve the upload endpoint with uvicorn: ``python -m shopstage``."""

from __future__ import annotations

import uvicorn

from shopstage.app import create_app
from shopstage.config import ShopstageSettings


def main() -> None:
    settings = ShopstageSettings(_env_file=".env")
    config = settings.to_config()
    uvicorn.run(
        create_app(config),
        host=settings.host,
        port=settings.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
