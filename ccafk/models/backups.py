from datetime import datetime
from tortoise import fields, models
from ccafk.utils.convert import from_timestamp


class Backups(models.Model):
    id = fields.IntField(primary_key=True)
    save_code = fields.TextField()
    # ISO-8601 text in UTC, see ccafk.utils.convert.to_timestamp
    created_at = fields.CharField(max_length=32)

    class Meta:
        table = "backups"

    def __str__(self):
        return str(self.id)

    @property
    def saved_at(self) -> datetime:
        return from_timestamp(self.created_at)
