# app/routers/__init__.py
from . import auth, billing, inventory

__all__ = ["auth", "billing", "inventory"]
