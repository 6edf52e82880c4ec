"""Run the catalog service with uvicorn."""

import uvicorn

from catalog_service.infrastructure.config import settings


def main() -> None:
    uvicorn.run(
        "catalog_service.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
