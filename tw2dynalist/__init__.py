"""Forward Twitter bookmarks to the Dynalist inbox."""

__version__ = "0.1.0"
