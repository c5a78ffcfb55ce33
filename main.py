"""Run the Monarchy API with uvicorn.

Defaults come from :class:`monarchy.config.Settings`; flags override them.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from monarchy.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the Monarchy rules engine over HTTP")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="Restart on source changes")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "serving games from %s on %s:%s", settings.data_dir, args.host, args.port
    )
    uvicorn.run("monarchy.api.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
