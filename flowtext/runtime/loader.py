"""Lazy, shared loading of the analysis runtime.

``SingletonAsyncResource.acquire`` prepares the runtime at most once per
process: concurrent callers join the load already in flight, a loaded
runtime is returned without suspending, and a failed load leaves the
resource ready to try again on the next call.

Callers may run on different event loops (e.g. ``analyze_sync`` from
several threads). The load task lives on the loop that started it; callers
on other loops join through a thread-safe mirror of its outcome.
"""

import asyncio
import concurrent.futures
import logging
import threading
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from flowtext.config import get_config
from flowtext.errors import (
    FlowtextError,
    PackageInstallError,
    PackageManagerLoadError,
    RuntimeLoadError,
)
from flowtext.runtime.interpreter import load_runtime
from flowtext.state import LoadPhase, LoadState

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "pyflowchart"


async def _step(fn: Callable[[], Awaitable], error_cls: type, what: str):
    """Run one init step, mapping foreign exceptions onto ``error_cls``."""
    try:
        return await fn()
    except FlowtextError:
        raise
    except Exception as exc:
        raise error_cls(f"{what}: {exc}") from exc


class SingletonAsyncResource:
    """Memoized async runtime with in-flight request coalescing.

    Args:
        runtime_loader: coroutine function returning a runtime object that has
            ``load_package_manager()`` (coroutine returning an object with an
            ``install(name)`` coroutine) and ``run(script)``.
        package_name: package installed into the runtime before it is handed out.
    """

    def __init__(
        self,
        runtime_loader: Callable[[], Awaitable[Any]] = load_runtime,
        package_name: str = DEFAULT_PACKAGE,
    ):
        self._runtime_loader = runtime_loader
        self.package_name = package_name
        self._state = LoadState()
        self._lock = threading.Lock()
        self._outcome: Optional[concurrent.futures.Future] = None

    def __repr__(self) -> str:
        return f"<SingletonAsyncResource {self.package_name} {self._state!r}>"

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state.phase is LoadPhase.READY

    async def acquire(self):
        """Return the initialized runtime, loading it first if needed."""
        state = self._state
        with self._lock:
            if state.phase is LoadPhase.READY:
                logger.debug("Runtime already loaded.")
                return state.handle

            if state.phase is LoadPhase.LOADING:
                logger.info("Runtime is currently loading, waiting...")
                pending, outcome = state.pending, self._outcome
            else:
                # Publish under the lock so racing callers, on this loop or
                # any other, all see LOADING from here on.
                logger.info("Initiating runtime loading (attempt %d)...", state.attempts + 1)
                pending = asyncio.ensure_future(self._initialize())
                outcome = self._outcome = concurrent.futures.Future()
                pending.add_done_callback(self._settle)
                state.begin(pending)

        if pending.get_loop() is asyncio.get_running_loop():
            return await asyncio.shield(pending)
        return await asyncio.shield(asyncio.wrap_future(outcome))

    def preload(self) -> asyncio.Task:
        """Start loading in the background; failures are logged, not raised."""

        async def _warm():
            try:
                await self.acquire()
            except FlowtextError as exc:
                logger.error("Background runtime load failed: %s", exc)

        return asyncio.ensure_future(_warm())

    def _settle(self, task: asyncio.Future) -> None:
        # Runs before any joined caller resumes, even if the task was
        # cancelled before it started.
        state = self._state
        with self._lock:
            if state.pending is not task:
                return
            outcome = self._outcome
            self._outcome = None
            if task.cancelled():
                logger.warning("Runtime loading was cancelled.")
                state.reset()
                outcome.set_exception(RuntimeLoadError("Runtime loading was cancelled"))
            elif task.exception() is not None:
                logger.error("Error during runtime setup: %s", task.exception())
                state.fail(task.exception())
                outcome.set_exception(task.exception())
            else:
                state.succeed(task.result())
                outcome.set_result(task.result())
                logger.info("Runtime ready with %s installed.", self.package_name)

    async def _initialize(self):
        logger.info("Loading runtime...")
        runtime = await _step(self._runtime_loader, RuntimeLoadError, "Runtime failed to load")

        logger.info("Runtime loaded. Loading package manager...")
        manager = await _step(
            runtime.load_package_manager,
            PackageManagerLoadError,
            "Package manager failed to load",
        )

        logger.info("Package manager loaded. Installing %s...", self.package_name)
        await _step(
            partial(manager.install, self.package_name),
            PackageInstallError,
            f"Could not install {self.package_name}",
        )
        return runtime


_resource: Optional[SingletonAsyncResource] = None
_resource_lock = threading.Lock()


def get_resource() -> SingletonAsyncResource:
    """Return the process-wide resource, built from config on first use."""
    global _resource
    with _resource_lock:
        if _resource is None:
            config = get_config()
            _resource = SingletonAsyncResource(
                package_name=config.get("package_name") or DEFAULT_PACKAGE,
            )
        return _resource


def reset_resource() -> None:
    """Forget the process-wide resource so the next call builds a new one."""
    global _resource
    with _resource_lock:
        _resource = None
