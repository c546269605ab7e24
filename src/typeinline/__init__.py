"""typeinline: inline imported TypeScript types into Vue single-file components."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("typeinline")
except PackageNotFoundError:
    __version__ = "dev"
