"""Authority mirror adapters. Importing this package registers them."""

from .logging_mirror import LoggingAuthorityMirror
from .memory_mirror import InMemoryAuthorityMirror

__all__ = ["LoggingAuthorityMirror", "InMemoryAuthorityMirror"]
