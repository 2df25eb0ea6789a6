"""Concurrency — render pool with in-flight coalescing and a debouncer."""

from texrender.concurrency.debounce import Debouncer
from texrender.concurrency.pool import RenderPool

__all__ = ["Debouncer", "RenderPool"]
