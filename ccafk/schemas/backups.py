from datetime import datetime
from pydantic import BaseModel, Field, StrictStr, field_validator


class CreateBackupSchema(BaseModel):
    save_code: StrictStr = Field(min_length=1, title="Save code")
    created_at: datetime = Field(strict=True, title="Created at")

    @field_validator("save_code")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Save code cannot be blank")
        return value


class PruneBackupsSchema(BaseModel):
    keep: int = Field(ge=0, title="Keep")


class ListBackupsSchema(BaseModel):
    limit: int = Field(ge=0, title="Limit")
