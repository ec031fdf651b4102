"""
Comment Detox: incremental toxicity audit of a YouTube comment history.
"""

from .version import API_VERSION as __version__

__all__ = ["__version__"]
