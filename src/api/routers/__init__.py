"""API routers."""

from api.routers import medicines, recognition

__all__ = ["medicines", "recognition"]
