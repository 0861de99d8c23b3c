"""pidtools: small commands that inspect running processes through /proc."""

from .descendants import collect_descendants, is_descendant
from .intmap import IntegerSet, IntegerSetIterator, IterStatus

__version__ = "2.0.0"

__all__ = [
    "IntegerSet",
    "IntegerSetIterator",
    "IterStatus",
    "collect_descendants",
    "is_descendant",
    "__version__",
]
