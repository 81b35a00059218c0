"""track: hierarchical work tracks with cycle-safe blocking dependencies."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("track-cli")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from track.core import Track, TrackDB, TrackDetails

__all__ = ["Track", "TrackDB", "TrackDetails", "__version__"]
