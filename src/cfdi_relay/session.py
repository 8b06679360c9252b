"""The per-connection workflow.

IDLE --GET_CAPTCHA--> AWAITING_CAPTCHA_INPUT --SOLVE_CAPTCHA--> SOLVING
SOLVING resolves to COMPLETED (result panel) or FAILED (error panel or
timeout). Any adapter failure on the way also ends in FAILED. Both terminal
states release the browser on entry.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from .browser.lifecycle import BrowserResource
from .actions.base import FormAdapter
from .constants import CAPTCHA_REJECTED_FALLBACK, DEFAULT_PORTAL_URL, WAIT_TIMEOUT_SECS
from .context import LookupKey, Session, SessionState
from .errors import ErrorKind, ProtocolViolation, SessionError, classify, client_message
from .portal import Element, RESULT_ELEMENTS
from .protocol import (
    CaptchaReady,
    CfdiResult,
    ErrorEvent,
    Event,
    Request,
    ScrapeSuccess,
    SolveRequest,
    StartRequest,
)

logger = logging.getLogger(__name__)


class SessionMachine:
    """
    Drives one ``Session`` from IDLE to a terminal state.

    ``handle`` must not be called concurrently for the same machine; the
    connection handler feeds requests one at a time, in arrival order.

    Args:
        adapter: Form Automation Adapter used for this session's browser.
        config: Dict from ``get_env_config()``; only ``portal_url`` and
            ``debug_screenshot_dir`` are read.
        timeout: Budget for each bounded wait on page state.
        race_options: Extra keyword arguments for ``supervisor.race``
            (``interval``, ``clock``, ``sleep``).
    """

    def __init__(
        self,
        adapter: FormAdapter,
        config: Optional[dict] = None,
        *,
        timeout: float = WAIT_TIMEOUT_SECS,
        race_options: Optional[Dict[str, Any]] = None,
        session_id: str = "",
    ):
        config = config or {}
        self.session = Session(resource=BrowserResource(adapter), session_id=session_id)
        self.portal_url = config.get("portal_url") or DEFAULT_PORTAL_URL
        self.debug_dir = config.get("debug_screenshot_dir")
        self.timeout = timeout
        self.race_options = dict(race_options or {})

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def finished(self) -> bool:
        """True once a terminal state is reached and the connection should close."""
        return self.session.is_terminal()

    async def handle(self, request: Request) -> List[Event]:
        """Apply one decoded client request and return the events to send."""
        if isinstance(request, StartRequest):
            return await self._start(request)
        if isinstance(request, SolveRequest):
            return await self._solve(request)
        raise TypeError(f"unsupported request: {request!r}")

    def reject(self, violation: ProtocolViolation) -> List[Event]:
        """Report a bad client message without touching the browser or the state."""
        logger.warning("[%s] Protocol violation in state %s: %s",
                       self.session.label(), self.session.state.value, violation.message)
        return [ErrorEvent(client_message(violation))]

    async def abort(self, exc: Exception) -> List[Event]:
        """Fail the session on an exception that escaped ``handle``."""
        return await self._fail(classify(exc))

    async def close(self) -> None:
        """Connection is gone: release the browser whatever the state."""
        if await self.session.resource.release():
            logger.info("[%s] Browser released on disconnect (state %s)",
                        self.session.label(), self.session.state.value)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _start(self, request: StartRequest) -> List[Event]:
        s = self.session
        if s.state is not SessionState.IDLE:
            return self.reject(ProtocolViolation(f"GET_CAPTCHA not allowed in state {s.state.value}"))

        s.lookup_key = LookupKey(request.uuid, request.rfc_emisor, request.rfc_receptor)
        logger.info("[%s] Starting lookup (emisor=%s, receptor=%s)",
                    s.label(), request.rfc_emisor, request.rfc_receptor)

        outcome = await s.resource.acquire()
        if not outcome.ok:
            return await self._fail(outcome.error)

        steps = (
            ("navigate", self.portal_url),
            ("fill", Element.UUID_INPUT, request.uuid),
            ("fill", Element.ISSUER_INPUT, request.rfc_emisor),
            ("fill", Element.RECEIVER_INPUT, request.rfc_receptor),
        )
        for method, *args in steps:
            outcome = await s.resource.call(method, *args)
            if not outcome.ok:
                return await self._fail(outcome.error)

        outcome = await s.resource.wait_visible(Element.CAPTCHA_IMAGE, self.timeout, **self.race_options)
        if not outcome.ok:
            return await self._fail(outcome.error)
        if outcome.value.timed_out:
            return await self._fail(SessionError(ErrorKind.TIMEOUT, "CAPTCHA image did not render"))

        outcome = await s.resource.call("screenshot_element", Element.CAPTCHA_IMAGE)
        if not outcome.ok:
            return await self._fail(outcome.error)

        s.captcha_image = outcome.value
        s.state = SessionState.AWAITING_CAPTCHA_INPUT
        logger.info("[%s] CAPTCHA ready (%d bytes), waiting for the operator", s.label(), len(s.captcha_image))
        return [CaptchaReady(s.captcha_image)]

    async def _solve(self, request: SolveRequest) -> List[Event]:
        s = self.session
        if not s.resource.is_held() or s.state is not SessionState.AWAITING_CAPTCHA_INPUT:
            return self.reject(ProtocolViolation(f"SOLVE_CAPTCHA not allowed in state {s.state.value}"))

        logger.info("[%s] CAPTCHA answer received: %s", s.label(), request.captcha_solution)
        outcome = await s.resource.call("fill", Element.CAPTCHA_INPUT, request.captcha_solution)
        if not outcome.ok:
            return await self._fail(outcome.error)

        await self._debug_screenshot("debug-before-click.png")

        outcome = await s.resource.call("click", Element.SEARCH_BUTTON)
        if not outcome.ok:
            return await self._fail(outcome.error)

        s.captcha_image = None
        s.state = SessionState.SOLVING

        # Error panel first: it wins when both are visible on the same poll
        outcome = await s.resource.race(
            [Element.ERROR_PANEL, Element.RESULT_PANEL], self.timeout, **self.race_options
        )
        if not outcome.ok:
            return await self._fail(outcome.error)
        race = outcome.value
        if race.timed_out:
            return await self._fail(SessionError(ErrorKind.TIMEOUT, "neither result nor error panel appeared"))

        if race.winner == Element.ERROR_PANEL.value:
            outcome = await s.resource.call("read_text", Element.ERROR_TEXT)
            text = outcome.value if outcome.ok else ""
            return await self._fail(SessionError(ErrorKind.CAPTCHA_REJECTED, text or CAPTCHA_REJECTED_FALLBACK))

        logger.info("[%s] CAPTCHA accepted after %.1fs, reading result", s.label(), race.elapsed)
        values = {}
        for element in RESULT_ELEMENTS:
            outcome = await s.resource.call("read_text", element)
            if not outcome.ok:
                return await self._fail(outcome.error)
            values[element.value] = outcome.value or ""

        await self._debug_screenshot("debug-results.png")
        return await self._complete(CfdiResult(**values))

    async def _complete(self, result: CfdiResult) -> List[Event]:
        s = self.session
        s.result = result
        s.last_error = None
        s.state = SessionState.COMPLETED
        await s.resource.release()
        logger.info("[%s] Lookup completed (estado=%s)", s.label(), result.estado_cfdi or "?")
        return [ScrapeSuccess(result)]

    async def _fail(self, error: SessionError) -> List[Event]:
        s = self.session
        s.result = None
        s.last_error = error
        s.state = SessionState.FAILED
        await s.resource.release()
        logger.error("[%s] Lookup failed (%s): %s", s.label(), error.kind.value, error.message)
        return [ErrorEvent(client_message(error))]

    async def _debug_screenshot(self, name: str) -> None:
        if not self.debug_dir:
            return
        path = os.path.join(self.debug_dir, f"{self.session.label()}-{name}")
        outcome = await self.session.resource.call("save_page_screenshot", path)
        if not outcome.ok:
            logger.debug("Debug screenshot %s skipped: %s", path, outcome.error.message)


__all__ = ["SessionMachine"]
