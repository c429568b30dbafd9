"""JSON API over the inventory store and the response parser."""

from .app import create_app

__all__ = ["create_app"]
