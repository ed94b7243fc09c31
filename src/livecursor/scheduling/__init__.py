"""Scheduling layer — execution contexts, debouncing and flush coalescing."""

from livecursor.scheduling.context import (
    ROOT_CONTEXT,
    ExecutionContext,
    ScheduledTask,
    current_context,
    noop,
)
from livecursor.scheduling.debounce import Debouncer, debounce
from livecursor.scheduling.flush import FlushScheduler

__all__ = [
    "ROOT_CONTEXT",
    "Debouncer",
    "ExecutionContext",
    "FlushScheduler",
    "ScheduledTask",
    "current_context",
    "debounce",
    "noop",
]
