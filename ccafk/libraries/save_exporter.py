import asyncio
import logging
import os
import shlex
from abc import ABC, abstractmethod
import aiofiles
from ccafk.exceptions import ExporterError

__all__ = [
    "SaveExporter",
    "FileSaveExporter",
    "CommandSaveExporter",
    "create_save_exporter",
]

logger = logging.getLogger(__name__)


class SaveExporter(ABC):
    """Source of the game save code. Implementations raise ExporterError on failure"""

    @abstractmethod
    async def export_save(self) -> str:
        pass


class FileSaveExporter(SaveExporter):
    """Reads the save code from a file kept up to date by the game driver"""

    def __init__(self, path: str, *, timeout: float = 30, encoding: str = "utf-8") -> None:
        self._path: str = path
        self._timeout: float = timeout
        self._encoding: str = encoding

    async def export_save(self) -> str:
        if not os.path.isfile(self._path):
            raise ExporterError(f"Save file {self._path} does not exist")

        try:
            content = await asyncio.wait_for(self._read(), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise ExporterError(f"Timed out reading save file {self._path}")
        except (OSError, UnicodeDecodeError) as e:
            raise ExporterError(f"Failed to read save file {self._path}: {e}") from e

        save_code = content.strip()

        if not save_code:
            raise ExporterError(f"Save file {self._path} is empty")

        return save_code

    async def _read(self) -> str:
        async with aiofiles.open(self._path, "r", encoding=self._encoding) as f:
            return await f.read()


class CommandSaveExporter(SaveExporter):
    """Runs a command and uses its standard output as the save code"""

    def __init__(self, command: str, *, timeout: float = 30, encoding: str = "utf-8") -> None:
        self._cmd: list[str] = shlex.split(command)
        self._timeout: float = timeout
        self._encoding: str = encoding

        if not self._cmd:
            raise ValueError("Export command cannot be empty")

    async def export_save(self) -> str:
        logger.debug(f"Running export command: {shlex.join(self._cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *self._cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExporterError(f"Failed to run export command: {e}") from e

        try:
            (stdout, stderr) = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ExporterError(f"Export command timed out after {self._timeout}s")

        if proc.returncode != 0:
            err = stderr.decode(self._encoding, errors="replace").strip()
            raise ExporterError(f"Export command exited with code {proc.returncode}: {err[-500:]}")

        try:
            save_code = stdout.decode(self._encoding).strip()
        except UnicodeDecodeError as e:
            raise ExporterError(f"Export command produced undecodable output: {e}") from e

        if not save_code:
            raise ExporterError("Export command produced no output")

        return save_code


def create_save_exporter(config: dict) -> SaveExporter | None:
    exporter_type = config.get("type")

    if not exporter_type:
        return None

    if exporter_type == "file":
        return FileSaveExporter(config["path"], timeout=config["timeout"], encoding=config["encoding"])
    elif exporter_type == "command":
        return CommandSaveExporter(config["command"], timeout=config["timeout"], encoding=config["encoding"])

    raise ValueError(f"Unknown exporter type: {exporter_type}")
