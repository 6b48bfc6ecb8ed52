"""Command line interface for the 1-Wire snapshot publisher."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` names the module; the Typer instance is ``cli.app.app``.

__all__ = []
