from aiohttp import web
from ccafk.utils.web import get_di
from ccafk.services.backups import BackupsService
from ccafk.exceptions import StorageError

health_routes = web.RouteTableDef()


@health_routes.get("/api/health")
async def health_get(request: web.Request):
    di = get_di(request)
    backups_service: BackupsService = di.backups_service

    data = {
        "status": "ok",
        "version": di.app_version,
        "scheduler": di.backup_scheduler.get_stats() if di.backup_scheduler else None,
    }

    try:
        data["backups"] = await backups_service.count()
    except StorageError:
        data["status"] = "degraded"
        data["backups"] = None

    return web.json_response(data)
