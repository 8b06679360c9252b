# tests/test_server.py
"""End-to-end scenarios through the connection handler."""

import asyncio
import base64
import pytest
from types import SimpleNamespace

from cfdi_relay.constants import PROTOCOL_VIOLATION_MESSAGE, TIMEOUT_MESSAGE
from cfdi_relay.portal import Element
from cfdi_relay.server import HEALTH_PATH, _health_check, handle_connection

from _utils import (
    FakeAdapter,
    FakeClock,
    FakeWebSocket,
    RESULT_TEXTS,
    solve_message,
    start_message,
)

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def run_connection(event_loop, ws, adapter, clock, timeout=15):
    return event_loop.run_until_complete(asyncio.wait_for(
        handle_connection(ws, adapter, {}, timeout=timeout, race_options=clock.race_options()),
        timeout=5,
    ))


def test_scenario_a_success_closes_connection(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock, texts=RESULT_TEXTS,
                          visible_at={Element.CAPTCHA_IMAGE: 0, Element.RESULT_PANEL: 3})
    ws = FakeWebSocket()
    ws.push(start_message("U1", "E1", "R1"))
    ws.push(solve_message("4821"))

    run_connection(event_loop, ws, adapter, clock)

    assert ws.sent_types() == ["CAPTCHA_READY", "SCRAPE_SUCCESS"]
    assert base64.b64decode(ws.sent[0]["payload"]["captchaImage"]) == adapter.captcha_png
    payload = ws.sent[1]["payload"]
    assert len(payload) == 10
    assert payload["rfcEmisor"] == "E1" and payload["rfcReceptor"] == "R1"
    assert ws.closed
    assert adapter.close_calls == 1


def test_scenario_b_captcha_rejected(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock, texts={Element.ERROR_TEXT: "Captcha inválido"},
                          visible_at={Element.CAPTCHA_IMAGE: 0, Element.ERROR_PANEL: 2})
    ws = FakeWebSocket()
    ws.push(start_message())
    ws.push(solve_message("0000"))

    run_connection(event_loop, ws, adapter, clock)

    assert ws.sent[-1] == {"type": "ERROR", "payload": {"message": "Captcha inválido"}}
    assert ws.closed
    assert adapter.close_calls == 1


def test_scenario_c_timeout(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock)
    ws = FakeWebSocket()
    ws.push(start_message())
    ws.push(solve_message())

    run_connection(event_loop, ws, adapter, clock)

    assert ws.sent[-1] == {"type": "ERROR", "payload": {"message": TIMEOUT_MESSAGE}}
    assert ws.closed
    assert adapter.close_calls == 1


def test_scenario_d_disconnect_while_awaiting_captcha_input(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock)
    ws = FakeWebSocket()

    async def scenario():
        task = asyncio.ensure_future(
            handle_connection(ws, adapter, {}, timeout=15, race_options=clock.race_options())
        )
        ws.push(start_message())
        await ws.wait_for_sent(1)
        ws.disconnect()
        await asyncio.wait_for(task, timeout=5)

    event_loop.run_until_complete(scenario())

    assert ws.sent_types() == ["CAPTCHA_READY"]
    assert adapter.close_calls == 1


def test_disconnect_during_bounded_wait_releases_promptly(event_loop):
    # Real clock, long budget: only the disconnect can end this wait
    adapter = FakeAdapter()
    ws = FakeWebSocket()

    async def scenario():
        task = asyncio.ensure_future(
            handle_connection(ws, adapter, {}, timeout=60, race_options={"interval": 0.01})
        )
        ws.push(start_message())
        await ws.wait_for_sent(1)
        ws.push(solve_message())
        while not any(c[0] == "click" for c in adapter.calls):
            await asyncio.sleep(0.005)
        ws.disconnect()
        await asyncio.wait_for(task, timeout=2)

    event_loop.run_until_complete(scenario())

    assert ws.sent_types() == ["CAPTCHA_READY"]
    assert adapter.close_calls == 1


def test_solve_before_start_keeps_connection_open(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock, texts=RESULT_TEXTS,
                          visible_at={Element.CAPTCHA_IMAGE: 0, Element.RESULT_PANEL: 1})
    ws = FakeWebSocket()
    ws.push(solve_message())
    ws.push(start_message())
    ws.push(solve_message())

    run_connection(event_loop, ws, adapter, clock)

    assert ws.sent_types() == ["ERROR", "CAPTCHA_READY", "SCRAPE_SUCCESS"]
    assert ws.sent[0]["payload"]["message"] == PROTOCOL_VIOLATION_MESSAGE
    assert adapter.close_calls == 1


def test_malformed_frames_are_reported_not_fatal(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock)
    ws = FakeWebSocket()

    async def scenario():
        task = asyncio.ensure_future(
            handle_connection(ws, adapter, {}, timeout=15, race_options=clock.race_options())
        )
        ws.push("{not json")
        ws.push({"type": "PING", "data": {}})
        await ws.wait_for_sent(2)
        ws.disconnect()
        await asyncio.wait_for(task, timeout=5)

    event_loop.run_until_complete(scenario())

    assert ws.sent_types() == ["ERROR", "ERROR"]
    assert not ws.closed
    assert adapter.calls == []


def test_unexpected_exception_becomes_error_event(event_loop):
    class Exploding(FakeAdapter):
        def screenshot_element(self, handle, element):
            raise MemoryError("boom")

    clock = FakeClock()
    adapter = Exploding(clock=clock)
    ws = FakeWebSocket()
    ws.push(start_message())

    run_connection(event_loop, ws, adapter, clock)

    assert ws.sent_types() == ["ERROR"]
    assert ws.sent[0]["payload"]["message"] == "boom"
    assert ws.closed
    assert adapter.close_calls == 1


def test_health_check_only_answers_health_path():
    responses = []
    connection = SimpleNamespace(respond=lambda status, body: responses.append((status, body)) or "RESP")

    assert _health_check(connection, SimpleNamespace(path=HEALTH_PATH)) == "RESP"
    assert responses[0][0] == 200
    assert _health_check(connection, SimpleNamespace(path="/")) is None


def test_deeply_nested_frame_is_reported_not_fatal(event_loop):
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock)
    ws = FakeWebSocket()

    async def scenario():
        task = asyncio.ensure_future(
            handle_connection(ws, adapter, {}, timeout=15, race_options=clock.race_options())
        )
        ws.push("[" * 200000)
        ws.push({"type": "PING", "data": {}})
        await ws.wait_for_sent(2)
        ws.disconnect()
        await asyncio.wait_for(task, timeout=5)

    event_loop.run_until_complete(scenario())

    assert ws.sent_types() == ["ERROR", "ERROR"]
    assert ws.sent[0]["payload"]["message"] == PROTOCOL_VIOLATION_MESSAGE
    assert not ws.closed


def test_decoder_crash_still_answers_and_keeps_session(event_loop, monkeypatch):
    import cfdi_relay.server as server

    real_decode = server.decode

    def flaky_decode(raw):
        if raw == "explode":
            raise RuntimeError("decoder blew up")
        return real_decode(raw)

    monkeypatch.setattr(server, "decode", flaky_decode)
    clock = FakeClock()
    adapter = FakeAdapter(clock=clock)
    ws = FakeWebSocket()

    async def scenario():
        task = asyncio.ensure_future(
            handle_connection(ws, adapter, {}, timeout=15, race_options=clock.race_options())
        )
        ws.push("explode")
        ws.push(start_message())
        await ws.wait_for_sent(2)
        ws.disconnect()
        await asyncio.wait_for(task, timeout=5)

    event_loop.run_until_complete(scenario())

    assert ws.sent_types() == ["ERROR", "CAPTCHA_READY"]
    assert ws.sent[0]["payload"]["message"] == PROTOCOL_VIOLATION_MESSAGE
    assert adapter.close_calls == 1
