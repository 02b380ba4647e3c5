__all__ = [
    "NotSet",
    "given",
]

from .sentinel import given, NotSet
