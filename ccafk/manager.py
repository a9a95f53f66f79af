import os
import sys
import logging
import signal
import yaml
import asyncio
from aiohttp import web
from logging.handlers import TimedRotatingFileHandler
from tortoise import Tortoise
from tortoise.exceptions import BaseORMException
from aerich import Command as AerichCommand
from ccafk.libraries.cleanup_queue import CleanupQueue
from ccafk.libraries.di_container import DiContainer
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.setup_web_server import setup_web_server
from ccafk.setup_di import setup_di
from ccafk.cli import CcAfkCli
from ccafk.exceptions import (
    CcAfkRuntimeError,
    ExitSignal,
    SIGHUPSignal,
)

__all__ = ["CcAfkManager"]
logger = logging.getLogger(__name__)


class CcAfkManager:
    def __init__(
        self,
        *,
        log_file: str = "",
        log_level: str = "",
        config_file: str = "",
        data_directory: str = "",
        app_version: str = "",
    ) -> None:
        self._init_logger(log_file, log_level)

        self._data_directory: str = data_directory if data_directory else self._gen_data_directory()
        self._cleanup: CleanupQueue = CleanupQueue()
        self._di: DiContainer = DiContainer()

        setup_di(
            self._di,
            config=self._load_config(file=config_file),
            data_directory=self._data_directory,
            app_version=app_version,
        )

    def run(self, command: str | None = None, **kwargs) -> int:
        if command:
            return self._run_main(self._async_run_cli, command, **kwargs)

        return self._run_main(self._async_run)

    def _load_config(self, *, file: str = "") -> dict:
        config_files = [
            "/etc/cookie-clicker-afk/config.yml",
            "/etc/opt/cookie-clicker-afk/config.yml",
            os.path.expanduser("~/.config/cookie-clicker-afk/config.yml"),
        ]

        if file:
            if not os.path.isfile(file):
                raise CcAfkRuntimeError(f"Config file '{file}' does not exist")

            config_files = [file]

        file_to_load = None

        for config_file in config_files:
            if os.path.isfile(config_file):
                file_to_load = config_file
                break

        if not file_to_load:
            return {}

        with open(file_to_load, "r") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise CcAfkRuntimeError(f"Failed to parse config file: {e}")

        if config is None:
            return {}

        if not isinstance(config, dict):
            raise CcAfkRuntimeError(f"Config file '{file_to_load}' must contain a mapping")

        return config

    def _is_venv(self) -> bool:
        return sys.prefix != getattr(sys, "base_prefix", sys.prefix)

    def _get_pid_filepath(self) -> str:
        return os.path.join(self._data_directory, "cookie-clicker-afk.pid")

    def _gen_data_directory(self) -> str:
        if self._is_venv():
            data_directory = os.path.join(sys.prefix, "var")
        elif os.getuid() == 0:
            data_directory = "/var/lib/cookie-clicker-afk/"
        else:
            data_directory = os.path.expanduser("~/.cookie-clicker-afk/")

        return data_directory

    def _init_logger(self, log_file: str, log_level: str) -> None:
        levels = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }

        format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        if not log_level in levels:
            log_level = "INFO"

        logger = logging.getLogger()
        logger.setLevel(levels[log_level])

        if log_file:
            directory = os.path.dirname(log_file)

            if directory and not os.path.exists(directory):
                os.makedirs(directory)

            handler = TimedRotatingFileHandler(log_file, when="midnight", backupCount=4)
        else:
            handler = logging.StreamHandler()

        handler.setLevel(levels[log_level])

        handler.setFormatter(logging.Formatter(format))

        logger.addHandler(handler)

        # sql statements are only interesting while debugging
        if log_level != "DEBUG":
            logging.getLogger("tortoise").setLevel(logging.WARNING)
            logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    def _exit_signal_handler(self) -> None:
        raise ExitSignal

    def _sighup_signal_handler(self) -> None:
        raise SIGHUPSignal

    def _run_main(self, main_task, *args, **kwargs) -> int:
        exit_code = 0

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        loop.add_signal_handler(signal.SIGTERM, self._exit_signal_handler)
        loop.add_signal_handler(signal.SIGINT, self._exit_signal_handler)
        loop.add_signal_handler(signal.SIGQUIT, self._exit_signal_handler)
        loop.add_signal_handler(signal.SIGHUP, self._sighup_signal_handler)

        try:
            loop.run_until_complete(main_task(*args, **kwargs))
        except SIGHUPSignal as e:
            logger.info("Received SIGHUP signal")
        except ExitSignal as e:
            logger.info("Received termination signal")
        except CcAfkRuntimeError as e:
            logger.error(str(e))
            exit_code = 1
        except Exception as e:
            logger.exception(e)
            exit_code = 1
        finally:
            if self._cleanup.has_jobs:
                try:
                    logger.info("Running cleanup jobs")
                    loop.run_until_complete(self._cleanup.consume_all())
                except Exception as e:
                    logger.exception(f"Error during cleanup: {e}")

            try:
                self._cancel_tasks(loop)
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:

                asyncio.set_event_loop(None)
                loop.close()

        return exit_code

    def _cancel_tasks(self, loop: asyncio.AbstractEventLoop) -> None:
        tasks = asyncio.all_tasks(loop=loop)

        if not tasks:
            return

        for task in tasks:
            task.cancel()

        loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))

        for task in tasks:
            if task.cancelled():
                continue

            if task.exception() is not None:
                loop.call_exception_handler(
                    {
                        "message": "Unhandled exception during task cancellation",
                        "exception": task.exception(),
                        "task": task,
                    }
                )

    async def _async_run(self):
        tasks = []

        if not self._di.backup_scheduler:
            raise CcAfkRuntimeError("No save exporter configured. Set exporter.type in the config file")

        self._ensure_data_directory()

        pid = str(os.getpid())
        pid_filepath: str = self._get_pid_filepath()

        if os.path.isfile(pid_filepath):
            raise CcAfkRuntimeError(f"Service is already running (pid file {pid_filepath} exists)")

        with open(pid_filepath, "w") as f:
            f.write(pid)

        self._cleanup.push("remove_service_pid", os.remove, pid_filepath)

        logger.info("Initializing database")

        await self._init_db()

        logger.info("Starting Cookie Clicker AFK tasks")

        tasks.append(asyncio.create_task(self._async_run_backup_scheduler(), name="backup_scheduler"))

        if self._di.web_server_config.get("enabled"):
            tasks.append(asyncio.create_task(self._async_run_webserver(), name="web_server"))

        (done, pending) = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

        logger.info("Task(s) exited")

        for task in done:
            if task.exception() is not None:
                logger.exception(f"Task {task.get_name()} failed with exception: {task.exception()}")

        for task in pending:
            logger.warning(f"Task {task.get_name()} is still pending. Cancelling it.")
            task.cancel()

    async def _async_run_cli(self, command: str, subcommand: str, **kwargs):
        self._ensure_data_directory()

        await self._init_db()

        await CcAfkCli(command, di=self._di).run(subcommand, **kwargs)

    async def _async_run_webserver(self):
        logger.info("Starting webserver")

        server = web.Application()

        server["di"] = self._di

        setup_web_server(server)

        runner = web.AppRunner(server, access_log=None)

        await runner.setup()

        self._cleanup.push("webserver_cleanup_runner", runner.cleanup)
        self._cleanup.push("webserver_log_shutdown", logger.info, "Webserver is shutting down")

        site = web.TCPSite(
            runner,
            self._di.web_server_config.get("ip"),
            self._di.web_server_config.get("port"),
        )

        await site.start()

        logger.info(f"Webserver listening on {self._di.web_server_config.get('ip')}:{self._di.web_server_config.get('port')}")

        while True:
            await asyncio.sleep(3600)

    async def _async_run_backup_scheduler(self):
        backup_scheduler: BackupScheduler = self._di.backup_scheduler

        self._cleanup.push("backup_scheduler_stop", backup_scheduler.stop)

        await backup_scheduler.run()

    def _ensure_data_directory(self) -> None:
        if not os.path.exists(self._data_directory):
            logger.info(f"Creating data directory at '{self._data_directory}'")
            os.makedirs(self._data_directory)

    async def _init_db(self):
        config = {
            "connections": {"default": f"sqlite://{self._di.db_path}"},
            "apps": {
                "models": {
                    "models": ["ccafk.models", "aerich.models"],
                    "default_connection": "default",
                }
            },
        }

        migrations_location = os.path.join(os.path.dirname(os.path.abspath(__file__)), "migrations")

        try:
            await Tortoise.init(config=config)
            self._cleanup.push("db_close", Tortoise.close_connections)

            cmd = AerichCommand(tortoise_config=config, app="models", location=migrations_location)

            await cmd.init()
            await cmd.upgrade()
        except (BaseORMException, OSError) as e:
            raise CcAfkRuntimeError(f"Failed to initialize database at '{self._di.db_path}': {e}") from e
