"""HTTP gateway for the topology coordinators."""

from .app import create_app

__all__ = ["create_app"]
