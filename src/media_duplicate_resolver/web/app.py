"""HTTP surface for triggering duplicate cleanups."""

import logging

from fastapi import APIRouter, FastAPI, Query
from fastapi.responses import PlainTextResponse

from ..core import DuplicateCleanupService

logger = logging.getLogger(__name__)

PLUGIN_PREFIX = "/Plugins/JellyfinDuplicateFinder"


def is_dry_run(test: str | None) -> bool:
    """Anything other than a case-insensitive "false" keeps the run simulated."""
    return (test or "").strip().lower() != "false"


def create_router(service: DuplicateCleanupService, prefix: str = "") -> APIRouter:
    """Routes for the health check and the cleanup trigger."""
    router = APIRouter(prefix=prefix)

    @router.get("/test", response_class=PlainTextResponse)
    def test_endpoint() -> str:
        return "ok"

    # Sync handler: FastAPI runs it in its threadpool and the service lock
    # serialises overlapping requests.
    @router.get("/delete-duplicates", response_class=PlainTextResponse)
    def delete_duplicates(test: str | None = Query("true")) -> str:
        dry_run = is_dry_run(test)
        logger.info(f"Duplicate cleanup requested over HTTP (dry_run={dry_run})")
        return service.run_duplicate_cleanup(dry_run=dry_run)

    return router


def create_app(service: DuplicateCleanupService) -> FastAPI:
    """
    Build the FastAPI application around a cleanup service.

    The routes are served at the root and again under the Jellyfin plugin
    prefix, so callers of the plugin URLs keep working.
    """
    app = FastAPI(title="Media Duplicate Resolver")
    app.include_router(create_router(service))
    app.include_router(create_router(service, PLUGIN_PREFIX))
    return app
