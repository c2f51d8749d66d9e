"""Admin HTTP API."""

from family_activities.api.main import app, create_app

__all__ = ["app", "create_app"]
