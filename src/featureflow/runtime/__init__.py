"""
Per-request runtime primitives: context, retry signals and the store interface.
"""

from .context import Context
from .retries import RETRY, RetrySignal, is_retry_signal, retry
from .store import InMemoryStore, Store

__all__ = ["Context", "RETRY", "RetrySignal", "is_retry_signal", "retry", "InMemoryStore", "Store"]
