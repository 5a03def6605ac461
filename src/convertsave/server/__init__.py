"""Local HTTP bridge used by the desktop shell."""

from convertsave.server.app import create_app

__all__ = ["create_app"]
