"""Serverless entrypoint: exposes the PharmIA ASGI app as ``app``."""

from app.main import app

__all__ = ["app"]
