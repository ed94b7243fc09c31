"""livecursor — batched, ordered change notifications over live queries.

Turns the per-document callbacks of a live query into debounced batches of
structural edits (add, update, move, remove), fans them out to many
subscribers, and coalesces the resulting wake-ups per execution context.

Quick start::

    from livecursor import LiveQueryObserver

    observer = LiveQueryObserver(collection.find(), debounce_ms=50)
    observer.subscribe(lambda batch: print(batch))

Building blocks::

    LiveQueryObserver        live query -> debounced batches
    MulticastCursorAdapter   ref-counted fan-out of one observer
    ChangeDiffer             batches -> edit lists for a renderer
    FlushScheduler           one resumption per context per burst
    Runtime                  shared scheduler + collector from config

"""

from typing import Any

__version__ = "0.1.0"
__all__ = [
    "AddChange",
    "ChangeDiffer",
    "ExecutionContext",
    "FlushScheduler",
    "LiveCursorConfig",
    "LiveQueryObserver",
    "MoveChange",
    "MulticastCursorAdapter",
    "RemoveChange",
    "ResourceHandle",
    "Runtime",
    "UpdateChange",
    "__version__",
    "load_config",
]

_LAZY = {
    "AddChange": "livecursor.changes",
    "UpdateChange": "livecursor.changes",
    "MoveChange": "livecursor.changes",
    "RemoveChange": "livecursor.changes",
    "ResourceHandle": "livecursor.handle",
    "ExecutionContext": "livecursor.scheduling.context",
    "FlushScheduler": "livecursor.scheduling.flush",
    "LiveQueryObserver": "livecursor.reactive.observer",
    "MulticastCursorAdapter": "livecursor.reactive.multicast",
    "ChangeDiffer": "livecursor.reactive.differ",
    "LiveCursorConfig": "livecursor.config",
    "load_config": "livecursor.config_loader",
    "Runtime": "livecursor.runtime",
}


def __getattr__(name: str) -> Any:
    """Lazy imports for the public API.

    Keeps ``import livecursor`` fast while providing a flat top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
