from aiohttp import web
from .health import health_routes
from .backups import backups_routes

__all__ = ["setup"]


def setup(app: web.Application) -> None:
    app.add_routes(health_routes)
    app.add_routes(backups_routes)
