"""Web surface for media duplicate resolver."""

from .app import PLUGIN_PREFIX, create_app, create_router, is_dry_run

__all__ = ["PLUGIN_PREFIX", "create_app", "create_router", "is_dry_run"]
