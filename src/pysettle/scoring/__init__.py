"""Pure scoring arithmetic usable standalone for score previews."""

from .calculator import points, round_points, total_points

__all__ = ["points", "round_points", "total_points"]
