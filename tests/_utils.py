# tests/_utils.py
"""Hand-written fakes shared by the session and server tests."""

import json
import time
import asyncio
from typing import Callable, Dict, Optional

from cfdi_relay.actions.base import FormAdapter
from cfdi_relay.portal import Element, RESULT_ELEMENTS


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)

    def race_options(self, interval: float = 1.0) -> dict:
        return {"clock": self, "sleep": self.sleep, "interval": interval}


class FakeHandle:
    def __init__(self, n: int):
        self.n = n
        self.closed = False


class FakeAdapter(FormAdapter):
    """
    Scriptable adapter.

    ``visible_at`` maps an element to the number of seconds after the last
    launch/click at which it becomes visible; elements missing from it never
    show up. ``fail_on`` maps a method name to an exception to raise.
    """

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], float]] = None,
        visible_at: Optional[Dict[Element, float]] = None,
        texts: Optional[Dict[Element, str]] = None,
        fail_on: Optional[Dict[str, Exception]] = None,
        captcha_png: bytes = b"\x89PNG-captcha",
    ):
        self.clock = clock or time.monotonic
        self.visible_at = {Element.CAPTCHA_IMAGE: 0.0} if visible_at is None else dict(visible_at)
        self.texts = dict(texts or {})
        self.fail_on = dict(fail_on or {})
        self.captcha_png = captcha_png
        self.calls = []
        self.handles = []
        self.close_calls = 0
        self.mark = 0.0

    def _record(self, method, *args):
        self.calls.append((method,) + args)
        exc = self.fail_on.get(method)
        if exc is not None:
            raise exc

    def automation_calls(self):
        return [c for c in self.calls if c[0] != "close"]

    def launch(self):
        self._record("launch")
        handle = FakeHandle(len(self.handles) + 1)
        self.handles.append(handle)
        self.mark = self.clock()
        return handle

    def navigate(self, handle, url):
        self._record("navigate", url)

    def fill(self, handle, element, text):
        self._record("fill", element, text)

    def screenshot_element(self, handle, element):
        self._record("screenshot_element", element)
        return self.captcha_png

    def click(self, handle, element):
        self._record("click", element)
        self.mark = self.clock()

    def is_visible(self, handle, element):
        self._record("is_visible", element)
        at = self.visible_at.get(element)
        return at is not None and self.clock() - self.mark >= at

    def read_text(self, handle, element):
        self._record("read_text", element)
        return self.texts.get(element, "")

    def save_page_screenshot(self, handle, path):
        self._record("save_page_screenshot", path)

    def close(self, handle):
        self.calls.append(("close",))
        self.close_calls += 1
        handle.closed = True


RESULT_TEXTS = {
    Element.RFC_EMISOR: "E1",
    Element.NOMBRE_EMISOR: "Emisor SA de CV",
    Element.RFC_RECEPTOR: "R1",
    Element.NOMBRE_RECEPTOR: "Receptor SC",
    Element.FOLIO_FISCAL: "U1",
    Element.FECHA_EXPEDICION: "2024-01-15T10:20:30",
    Element.TOTAL_CFDI: "$1,160.00",
    Element.EFECTO_COMPROBANTE: "Ingreso",
    Element.ESTADO_CFDI: "Vigente",
    Element.ESTATUS_CANCELACION: "Cancelable sin aceptación",
}
assert set(RESULT_TEXTS) == set(RESULT_ELEMENTS)


def start_message(uuid="U1", emisor="E1", receptor="R1") -> dict:
    return {"type": "GET_CAPTCHA", "data": {"uuid": uuid, "rfcEmisor": emisor, "rfcReceptor": receptor}}


def solve_message(solution="4821") -> dict:
    return {"type": "SOLVE_CAPTCHA", "data": {"captchaSolution": solution}}


_CLOSE = object()


class FakeWebSocket:
    """Duplex connection stand-in: push() feeds the server, sent collects its replies."""

    def __init__(self, id: str = "conn-1"):
        self.id = id
        self.sent = []
        self.closed = False
        self._incoming = asyncio.Queue()

    def push(self, message) -> None:
        if not isinstance(message, (str, bytes)):
            message = json.dumps(message)
        self._incoming.put_nowait(message)

    def disconnect(self) -> None:
        """Client side goes away."""
        self._incoming.put_nowait(_CLOSE)

    async def send(self, data: str) -> None:
        if self.closed:
            from websockets.exceptions import ConnectionClosedOK
            raise ConnectionClosedOK(None, None)
        self.sent.append(json.loads(data))

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSE)

    async def wait_for_sent(self, count: int, timeout: float = 2.0) -> None:
        deadline = time.monotonic() + timeout
        while len(self.sent) < count:
            if time.monotonic() > deadline:
                raise AssertionError(f"expected {count} messages, got {self.sent!r}")
            await asyncio.sleep(0.005)

    def sent_types(self):
        return [m["type"] for m in self.sent]

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item
