import logging
from aiohttp import web
from ccafk.utils.web import get_di, backup_to_dict, json_error
from ccafk.services.backups import BackupsService
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.exceptions import StorageError, ValidationError

backups_routes = web.RouteTableDef()
logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20


@backups_routes.get("/api/backups")
async def backups_get(request: web.Request):
    backups_service: BackupsService = get_di(request).backups_service

    try:
        limit = int(request.query.get("limit", DEFAULT_LIST_LIMIT))
    except ValueError:
        return json_error("Limit must be an integer", 400)

    try:
        backups = await backups_service.list_recent(limit)
    except ValidationError as e:
        return json_error(str(e), 400)
    except StorageError as e:
        logger.error(f"Error listing backups: {e}")
        return json_error("Failed to list backups", 500)

    return web.json_response([backup_to_dict(b) for b in backups])


@backups_routes.get("/api/backups/latest")
async def backup_latest_get(request: web.Request):
    backups_service: BackupsService = get_di(request).backups_service

    try:
        backup = await backups_service.latest()
    except StorageError as e:
        logger.error(f"Error fetching latest backup: {e}")
        return json_error("Failed to fetch latest backup", 500)

    if not backup:
        return json_error("No backups found", 404)

    return web.json_response(backup_to_dict(backup, with_code=True))


@backups_routes.get("/api/backups/{backup_id:\\d+}")
async def backup_get(request: web.Request):
    backups_service: BackupsService = get_di(request).backups_service

    backup_id = int(request.match_info.get("backup_id", 0))

    try:
        backup = await backups_service.get(backup_id)
    except StorageError as e:
        logger.error(f"Error fetching backup {backup_id}: {e}")
        return json_error("Failed to fetch backup", 500)

    if not backup:
        return json_error("Backup not found", 404)

    return web.json_response(backup_to_dict(backup, with_code=True))


@backups_routes.post("/api/backups")
async def backup_create(request: web.Request):
    backup_scheduler: BackupScheduler | None = get_di(request).backup_scheduler

    if not backup_scheduler:
        return json_error("No save exporter configured", 503)

    backup_id = await backup_scheduler.tick()

    if backup_id is None:
        stats = backup_scheduler.get_stats()
        return json_error(f"Failed to create backup: {stats['last_error']}", 502)

    return web.json_response({"status": "success", "message": "Backup successfully created", "id": backup_id})


@backups_routes.post("/api/backups/prune")
async def backups_prune(request: web.Request):
    backups_service: BackupsService = get_di(request).backups_service

    try:
        if request.content_type == "application/json":
            data = await request.json()
        else:
            data = await request.post()
    except ValueError:
        return json_error("Invalid request body", 400)

    if not hasattr(data, "get"):
        return json_error("Invalid request body", 400)

    try:
        keep = int(data.get("keep", ""))
    except (TypeError, ValueError):
        return json_error("Keep must be an integer", 400)

    try:
        deleted = await backups_service.prune(keep)
    except ValidationError as e:
        return json_error(str(e), 400)
    except StorageError as e:
        logger.error(f"Error pruning backups: {e}")
        return json_error("Failed to prune backups", 500)

    return web.json_response({"status": "success", "message": f"Pruned {deleted} backup(s)", "deleted": deleted})
