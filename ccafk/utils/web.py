from aiohttp import web
from ccafk.libraries.di_container import DiContainer
from ccafk.models.backups import Backups

__all__ = ["get_di", "backup_to_dict", "json_error"]


def get_di(request: web.Request) -> DiContainer:
    return request.app["di"]


def backup_to_dict(backup: Backups, *, with_code: bool = False) -> dict:
    data = {
        "id": backup.id,
        "created_at": backup.created_at,
        "size": len(backup.save_code),
    }

    if with_code:
        data["save_code"] = backup.save_code

    return data


def json_error(message: str, status: int) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=status)
