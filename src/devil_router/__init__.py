"""devil-router — category routing core for the DEVIL DEV chat application."""

from importlib import metadata

try:
    __version__ = metadata.version("devil-router")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"
