"""bookinsight — PDF text scanning and cached AI book analysis."""

from bookinsight.version import __version__

__all__ = ["__version__"]
