"""livecursor configuration.

LiveCursorConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass

from livecursor._errors import ConfigError


@dataclass(frozen=True, slots=True)
class LiveCursorConfig:
    """Configuration for a livecursor runtime.

    Attributes:
        debounce_ms: Quiet period before an observer emits a batch.
            ``0`` coalesces only callbacks made before the loop yields.
        flush_window_ms: Delay before the flush scheduler resumes a context.
        eager: Fetch once instead of observing (contexts that cannot
            observe, e.g. one-shot server rendering).
        max_events: Capacity of the observability event log.
        verbose: Print a summary of each batch and error to stderr.

    """

    debounce_ms: float = 50.0
    flush_window_ms: float = 0.0
    eager: bool = False
    max_events: int = 10_000
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.debounce_ms < 0:
            msg = f"debounce_ms must be >= 0, got {self.debounce_ms!r}"
            raise ConfigError(msg)
        if self.flush_window_ms < 0:
            msg = f"flush_window_ms must be >= 0, got {self.flush_window_ms!r}"
            raise ConfigError(msg)
        if self.max_events < 1:
            msg = f"max_events must be >= 1, got {self.max_events!r}"
            raise ConfigError(msg)
