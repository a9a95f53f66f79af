import os
from ccafk.libraries.di_container import DiContainer
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.libraries.save_exporter import create_save_exporter
from ccafk.services.backups import BackupsService
from ccafk.schemas.config import ConfigSchema

__all__ = ["setup_di"]


def setup_di(deps: DiContainer, *, config: dict, data_directory: str = "", app_version: str = "") -> None:
    config_obj = ConfigSchema.from_dict(config)

    scheduler_config = config_obj.scheduler.model_dump()
    exporter_config = config_obj.exporter.model_dump()
    web_server_config = config_obj.web_server.model_dump()

    web_server_config["ip"] = str(web_server_config["ip"])

    # data
    deps.scheduler_config = scheduler_config
    deps.exporter_config = exporter_config
    deps.web_server_config = web_server_config
    deps.app_version = app_version
    deps.db_path = os.path.join(data_directory, "app.db")

    # libraries
    deps.save_exporter = create_save_exporter(exporter_config)

    # services
    deps.backups_service = BackupsService()

    # the scheduler can only exist once we know where save codes come from
    if deps.save_exporter:
        deps.backup_scheduler = BackupScheduler(
            deps.save_exporter,
            deps.backups_service,
            capture_interval=scheduler_config["capture_interval"],
            retention_count=scheduler_config["retention_count"],
            capture_on_start=scheduler_config["capture_on_start"],
        )
    else:
        deps.backup_scheduler = None
