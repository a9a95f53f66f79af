from ipaddress import ip_address
from typing import Literal, Optional
from pydantic import BaseModel, Field, IPvAnyAddress, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchedulerConfigSchema(BaseSettings):
    capture_interval: float = Field(default=60, gt=0)
    retention_count: int = Field(default=100, ge=1)
    capture_on_start: bool = False

    model_config = SettingsConfigDict(env_prefix="CCAFK_")


class ExporterConfigSchema(BaseSettings):
    type: Optional[Literal["file", "command"]] = None
    path: Optional[str] = None
    command: Optional[str] = None
    timeout: float = Field(default=30, gt=0)
    encoding: str = "utf-8"

    model_config = SettingsConfigDict(env_prefix="CCAFK_EXPORTER_")

    @model_validator(mode="after")
    def check_source(self):
        if self.type == "file" and not self.path:
            raise ValueError("Exporter path is required when exporter type is 'file'")

        if self.type == "command" and not (self.command and self.command.strip()):
            raise ValueError("Exporter command is required when exporter type is 'command'")

        return self


class WebServerConfigSchema(BaseSettings):
    enabled: bool = True
    ip: IPvAnyAddress = ip_address("127.0.0.1")
    port: int = Field(default=8080, ge=0, le=65535)

    model_config = SettingsConfigDict(env_prefix="CCAFK_WEB_")


class ConfigSchema(BaseModel):
    scheduler: SchedulerConfigSchema
    exporter: ExporterConfigSchema
    web_server: WebServerConfigSchema

    @classmethod
    def from_dict(cls, config: dict | None) -> "ConfigSchema":
        """
        Build the config from a parsed config file. Values from the file take
        precedence, environment variables fill in whatever the file omits.
        """
        config = config or {}

        return cls(
            scheduler=SchedulerConfigSchema(**(config.get("scheduler") or {})),
            exporter=ExporterConfigSchema(**(config.get("exporter") or {})),
            web_server=WebServerConfigSchema(**(config.get("web_server") or {})),
        )
