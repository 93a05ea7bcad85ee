from .field_cache import FieldCache
from .field_loader import load_field, write_field
from .matchplay_client import MatchplayClient

__all__ = [
    "FieldCache",
    "load_field",
    "write_field",
    "MatchplayClient",
]
