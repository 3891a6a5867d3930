"""Local git engine: stash reconciliation, history decoration and hunk patches."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("hunkwork")
except PackageNotFoundError:
    # Fallback for development mode
    __version__ = "0.0.0-dev"
