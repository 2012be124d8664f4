from .state import StateBlob

__all__ = [
    'StateBlob',
]
