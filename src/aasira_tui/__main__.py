"""Punto de entrada principal."""

import asyncio
import logging
import sys


def setup_logging(config) -> None:
    """Log a archivo para no ensuciar la consola."""
    logging.basicConfig(
        filename=str(config.log_file),
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> int:
    """Ejecutar aplicación."""
    from .config import get_config
    from .core.course import ContentError
    from .tui.app import CoursesApp

    config = get_config()
    setup_logging(config)

    try:
        app = CoursesApp(config)
    except ContentError as e:
        print(f"\033[31m✗ {e}\033[0m")
        return 1

    asyncio.run(app.run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
