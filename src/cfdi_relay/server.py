"""WebSocket front end: one ``SessionMachine`` per connection.

A reader pumps inbound frames into a queue and a worker drains it, so
requests are handled one at a time and in arrival order. The server closes
the connection after a SCRAPE_SUCCESS or a terminal ERROR. When the client
goes away first, the worker is cancelled and the browser released even if a
bounded wait was in flight.
"""

import asyncio
import contextlib
import functools
import logging
from http import HTTPStatus
from typing import Any, Dict, Optional

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from .actions.base import FormAdapter
from .constants import WAIT_TIMEOUT_SECS
from .errors import ProtocolViolation
from .protocol import decode, encode
from .session import SessionMachine

logger = logging.getLogger(__name__)

HEALTH_PATH = "/healthz"


async def _process(websocket, machine: SessionMachine, inbox: asyncio.Queue) -> None:
    """Handle queued frames until the session reaches a terminal state."""
    label = machine.session.label
    while True:
        raw = await inbox.get()
        try:
            request = decode(raw)
        except ProtocolViolation as e:
            events = machine.reject(e)
        except Exception as e:
            logger.exception("[%s] Could not decode frame", label())
            events = machine.reject(ProtocolViolation(f"undecodable frame: {e.__class__.__name__}"))
        else:
            logger.debug("[%s] Received %s", label(), type(request).__name__)
            try:
                events = await machine.handle(request)
            except Exception as e:
                logger.exception("[%s] Unhandled error while handling %s", label(), type(request).__name__)
                events = await machine.abort(e)

        try:
            for event in events:
                await websocket.send(encode(event))
        except ConnectionClosed:
            logger.info("[%s] Client went away before %d event(s) could be sent", label(), len(events))
            return

        if machine.finished:
            await websocket.close()
            return


async def handle_connection(
    websocket,
    adapter: FormAdapter,
    config: Optional[dict] = None,
    *,
    timeout: float = WAIT_TIMEOUT_SECS,
    race_options: Optional[Dict[str, Any]] = None,
) -> None:
    """Serve one client connection from open to close."""
    session_id = str(getattr(websocket, "id", "") or "")
    machine = SessionMachine(adapter, config, timeout=timeout, race_options=race_options, session_id=session_id)
    inbox: asyncio.Queue = asyncio.Queue()
    worker = asyncio.create_task(_process(websocket, machine, inbox))
    logger.info("Client connected (%s)", session_id or "-")

    try:
        async for raw in websocket:
            if worker.done():
                break
            inbox.put_nowait(raw)
    except ConnectionClosed:
        pass
    finally:
        if not worker.done():
            worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("[%s] Session worker crashed", machine.session.label())
        await machine.close()
        logger.info("Client disconnected (%s, final state %s)", session_id or "-", machine.state.value)


def _health_check(connection, request):
    """Answer plain HTTP probes; let everything else upgrade to WebSocket."""
    if request.path == HEALTH_PATH:
        return connection.respond(HTTPStatus.OK, "ok\n")
    return None


async def serve_forever(config: dict, adapter: Optional[FormAdapter] = None) -> None:
    """Listen on ``config['host']:config['port']`` until cancelled."""
    if adapter is None:
        from .actions.adapter import SeleniumFormAdapter
        adapter = SeleniumFormAdapter(config)

    handler = functools.partial(handle_connection, adapter=adapter, config=config)
    async with serve(handler, config["host"], config["port"], process_request=_health_check) as server:
        logger.info("WebSocket server listening on %s:%s", config["host"], config["port"])
        with contextlib.suppress(asyncio.CancelledError):
            await server.serve_forever()
    logger.info("WebSocket server stopped")


__all__ = [
    "HEALTH_PATH",
    "handle_connection",
    "serve_forever",
]
