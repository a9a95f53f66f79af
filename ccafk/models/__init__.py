from .backups import Backups

__all__ = [
    "Backups",
]
