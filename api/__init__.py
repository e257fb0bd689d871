"""Request handlers mapping caller identity and raw params to JSON responses."""
from .responses import Identity, Response

__all__ = ["Identity", "Response"]
