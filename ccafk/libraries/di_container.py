from types import SimpleNamespace

__all__ = ["DiContainer"]


class DiContainer(SimpleNamespace):
    """Write-once dependency container shared by the worker, the web server and the cli"""

    def __setattr__(self, name: str, value) -> None:
        if hasattr(self, name):
            raise AttributeError(f"Dependency '{name}' is already registered")
        super().__setattr__(name, value)
