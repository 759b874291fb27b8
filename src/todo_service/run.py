"""CLI entry point for launching the FastAPI app with uvicorn."""

import uvicorn

from .logger import normalize_log_level
from .settings import get_settings


def main() -> None:
    """Run the server using HOST/PORT from the environment."""
    settings = get_settings()
    uvicorn.run(
        "todo_service.main:app",
        host=settings.host,
        port=settings.port,
        log_level=normalize_log_level(settings.log_level).lower(),
    )


if __name__ == "__main__":
    main()
