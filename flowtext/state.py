"""Load state of the shared runtime — the single source of truth for the loader."""

import asyncio
from enum import Enum
from typing import Any, Optional

from flowtext.errors import InvalidStateTransition


class LoadPhase(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LoadState:
    """Lifecycle of a lazily created resource.

    UNLOADED -> LOADING -> READY, or LOADING -> FAILED. FAILED behaves like
    UNLOADED for the next acquire, so a failure never wedges the resource.
    ``pending`` is set only while LOADING.
    """

    def __init__(self):
        self.phase = LoadPhase.UNLOADED
        self.pending: Optional[asyncio.Future] = None
        self.handle: Any = None
        self.error: Optional[BaseException] = None
        self.attempts = 0

    def __repr__(self) -> str:
        return f"<LoadState {self.phase.value} attempts={self.attempts}>"

    @property
    def can_start(self) -> bool:
        return self.phase in (LoadPhase.UNLOADED, LoadPhase.FAILED)

    def begin(self, pending: asyncio.Future) -> None:
        if not self.can_start:
            raise InvalidStateTransition(f"cannot start loading from {self.phase.value}")
        self.phase = LoadPhase.LOADING
        self.pending = pending
        self.error = None
        self.attempts += 1

    def succeed(self, handle: Any) -> None:
        if self.phase is not LoadPhase.LOADING:
            raise InvalidStateTransition(f"cannot become ready from {self.phase.value}")
        self.phase = LoadPhase.READY
        self.handle = handle
        self.pending = None

    def fail(self, error: BaseException) -> None:
        if self.phase is not LoadPhase.LOADING:
            raise InvalidStateTransition(f"cannot fail from {self.phase.value}")
        self.phase = LoadPhase.FAILED
        self.error = error
        self.handle = None
        self.pending = None

    def reset(self) -> None:
        """Drop back to UNLOADED (cancelled load)."""
        if self.phase is LoadPhase.READY:
            raise InvalidStateTransition("cannot reset a ready resource")
        self.phase = LoadPhase.UNLOADED
        self.handle = None
        self.pending = None
