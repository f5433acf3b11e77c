"""vardeps: strip dependency entries from package descriptors."""

__version__ = "0.1.0"
