from .base import Provider
from .http import HttpProvider
from .local import LocalProvider

__all__ = [
    "Provider",
    "HttpProvider",
    "LocalProvider",
]
