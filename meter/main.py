from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_taxonomy() -> None:
    """Load the taxonomy and indicator catalogue. Raises RuntimeError if either is unusable."""
    from indicators.definitions import get_indicator_catalog
    from indicators.taxonomy import get_taxonomy

    try:
        taxonomy = get_taxonomy()
        catalog = get_indicator_catalog()
    except (OSError, ValueError, KeyError) as exc:
        raise RuntimeError("Indicator taxonomy could not be loaded.") from exc

    logging.getLogger(__name__).info(
        "Taxonomy loaded: %d categories, %d mapped programs, %d indicators",
        len(taxonomy.categories),
        len(taxonomy.program_categories),
        len(catalog.all()),
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate static configuration on boot."""
    from meter.config import get_meter_settings

    _check_taxonomy()
    settings = get_meter_settings()
    for template in (settings.template_path, settings.cumulative_template_path):
        if not template.is_file():
            logging.getLogger(__name__).warning("Report template not found: %s", template)
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="Activity Meter API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from meter.api.routers import meter_router

    application.include_router(meter_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
