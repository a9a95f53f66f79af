__all__ = [
    "CcAfkError",
    "CcAfkRuntimeError",
    "ExporterError",
    "ValidationError",
    "StorageError",
    "ExitSignal",
    "SIGHUPSignal",
]


class CcAfkError(Exception):
    pass


class CcAfkRuntimeError(CcAfkError):
    """Unrecoverable problem while starting the service"""
    pass


class ExporterError(CcAfkError):
    """The save code could not be obtained from the game"""
    pass


class ValidationError(CcAfkError, ValueError):
    """Invalid data handed to the backup store"""
    pass


class StorageError(CcAfkError):
    """The backup store failed to read or write"""
    pass


# raised from signal handlers, must not be caught by generic "except Exception" blocks
class ExitSignal(BaseException):
    pass


class SIGHUPSignal(BaseException):
    pass
