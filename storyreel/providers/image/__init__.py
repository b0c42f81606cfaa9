"""Image generation providers"""

from .replicate import ReplicateImageClient

__all__ = ["ReplicateImageClient"]
