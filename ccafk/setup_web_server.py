from aiohttp import web
from ccafk.endpoints import setup as _setup_endpoints

__all__ = ["setup_web_server"]


def setup_web_server(app: web.Application) -> None:
    _setup_endpoints(app)
    _setup_on_shutdown(app)


def _setup_on_shutdown(app: web.Application) -> None:
    app.on_shutdown.append(_stop_scheduler)


async def _stop_scheduler(app: web.Application) -> None:
    if app["di"].backup_scheduler:
        app["di"].backup_scheduler.stop()
