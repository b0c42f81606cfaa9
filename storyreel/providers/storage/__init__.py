"""Object storage providers"""

from .local import LocalStorageProvider
from .r2 import R2StorageProvider

__all__ = ["LocalStorageProvider", "R2StorageProvider"]
