"""Ownership of one session's browser.

``BrowserResource`` is the only object that touches the adapter's handle.
Every adapter call goes through it, runs in a worker thread and comes back
as an ``ActionResult``: either a value or a classified ``SessionError``.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..actions.base import FormAdapter
from ..errors import ErrorKind, SessionError, classify
from ..portal import Element
from ..supervisor import RaceOutcome, race, wait_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    value: Any = None
    error: Optional[SessionError] = None

    @classmethod
    def success(cls, value: Any = None) -> "ActionResult":
        return cls(True, value=value)

    @classmethod
    def failure(cls, error: SessionError) -> "ActionResult":
        return cls(False, error=error)


class BrowserResource:
    """
    Single-acquisition, release-once wrapper around an adapter handle.

    ``release()`` is idempotent: releasing twice, or releasing something that
    was never acquired, does nothing. ``release_count`` counts the releases
    that actually closed a browser and is never more than one.
    """

    def __init__(self, adapter: FormAdapter):
        self._adapter = adapter
        self._handle: Any = None
        self._acquired = False
        self.release_count = 0

    def is_held(self) -> bool:
        return self._handle is not None

    async def acquire(self) -> ActionResult:
        """Launch the browser. A resource can be acquired once in its lifetime."""
        if self._acquired:
            raise RuntimeError("browser resource was already acquired for this session")
        self._acquired = True
        launch = asyncio.ensure_future(asyncio.to_thread(self._adapter.launch))
        try:
            handle = await asyncio.shield(launch)
        except asyncio.CancelledError:
            # Let the launch finish and keep its handle so release() can close it
            with contextlib.suppress(Exception):
                self._handle = await launch
            raise
        except Exception as e:
            error = classify(e, during_launch=True)
            logger.error("Browser launch failed: %s", error.message)
            return ActionResult.failure(error)
        self._handle = handle
        logger.debug("Browser acquired")
        return ActionResult.success(handle)

    async def call(self, method: str, *args: Any) -> ActionResult:
        """Run ``adapter.<method>(handle, *args)`` off the event loop."""
        handle = self._handle
        if handle is None:
            return ActionResult.failure(SessionError(ErrorKind.UNKNOWN, "browser is not running"))
        fn = getattr(self._adapter, method)
        try:
            value = await asyncio.to_thread(fn, handle, *args)
        except Exception as e:
            error = classify(e)
            logger.warning("Adapter call %s failed (%s): %s", method, error.kind.value, error.message)
            return ActionResult.failure(error)
        return ActionResult.success(value)

    def _visible(self, handle: Any, element: Element):
        async def predicate() -> bool:
            return await asyncio.to_thread(self._adapter.is_visible, handle, element)
        return predicate

    async def _supervised(self, waiter) -> ActionResult:
        handle = self._handle
        if handle is None:
            return ActionResult.failure(SessionError(ErrorKind.UNKNOWN, "browser is not running"))
        try:
            outcome: RaceOutcome = await waiter(handle)
        except Exception as e:
            error = classify(e)
            logger.warning("Visibility probe failed (%s): %s", error.kind.value, error.message)
            return ActionResult.failure(error)
        return ActionResult.success(outcome)

    async def race(self, elements: Sequence[Element], timeout: float, **options: Any) -> ActionResult:
        """
        Wait for the first of ``elements`` to become visible.

        The value is a ``RaceOutcome`` whose ``winner`` is the element name,
        or ``None`` when the budget ran out.
        """
        return await self._supervised(lambda handle: race(
            [(el.value, self._visible(handle, el)) for el in elements], timeout, **options))

    async def wait_visible(self, element: Element, timeout: float, **options: Any) -> ActionResult:
        return await self._supervised(lambda handle: wait_for(
            element.value, self._visible(handle, element), timeout, **options))

    async def release(self) -> bool:
        """Close the browser if one is held. Returns True if this call closed it."""
        handle, self._handle = self._handle, None
        if handle is None:
            return False
        self.release_count += 1
        try:
            # The close must finish even if the caller is being cancelled
            await asyncio.shield(asyncio.to_thread(self._adapter.close, handle))
        except Exception as e:
            logger.warning("Browser close raised: %s", classify(e).message)
        else:
            logger.debug("Browser released")
        return True


__all__ = [
    "ActionResult",
    "BrowserResource",
]
