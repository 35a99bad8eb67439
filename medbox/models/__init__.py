# medbox/models/__init__.py

from .kv_entry import KeyValueEntry

__all__ = [
    "KeyValueEntry"
]
