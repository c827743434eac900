from .models import Item, Queue, SCHEMA_VERSION, NO_CURSOR
from . import store

__all__ = (
    "Item",
    "Queue",
    "SCHEMA_VERSION",
    "NO_CURSOR",
    "store",
)
