"""HTTP API for RE:MIND."""

from remind.api.app import create_app

__all__ = ["create_app"]
