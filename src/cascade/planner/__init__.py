"""Message classification and action planning."""

from .service import ActionPlanner

__all__ = ["ActionPlanner"]
