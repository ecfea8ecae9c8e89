import argparse
import asyncio
import itertools
import logging

import websockets
from websockets.protocol import State

from config import load_config
from dispatcher import Dispatcher

logger = logging.getLogger(__name__)

_ids = itertools.count(1)

OUTBOX_SIZE = 256


class WebSocketConnection:
    """
    Connection handle handed to the relay core.

    ``send`` only queues the frame; a writer task pushes queued frames out in
    order, so handlers never await in the middle of a fanout. A client that
    lets its outbox fill up is closed and reported as no longer open, so the
    next broadcast evicts it.
    """

    def __init__(self, websocket, maxsize: int = OUTBOX_SIZE):
        self.websocket = websocket
        self.id = next(_ids)
        self.display_name = None
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize)
        self._writer = None
        self._closer = None

    @property
    def is_open(self) -> bool:
        return self._closer is None and self.websocket.protocol.state is State.OPEN

    def send(self, text: str) -> None:
        if self._closer is not None:
            return
        try:
            self._outbox.put_nowait(text)
        except asyncio.QueueFull:
            logger.warning("Outbox full for client %s, closing", self.id)
            self._closer = asyncio.create_task(self.websocket.close(1008, "outbox full"))

    def start(self) -> None:
        self._writer = asyncio.create_task(self._drain())

    async def stop(self) -> None:
        if self._writer is None:
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Writer for client %s failed", self.id)

    async def _drain(self) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await self.websocket.send(text)
            except websockets.ConnectionClosed:
                logger.debug("Dropping outbound frames for closed client %s", self.id)
                return


class RelayServer:
    def __init__(self, port: int, host: str = "0.0.0.0", dispatcher: Dispatcher = None):
        self.port = port
        self.host = host
        self.dispatcher = dispatcher or Dispatcher()

    async def handler(self, websocket):
        connection = WebSocketConnection(websocket)
        connection.start()
        logger.info("Connection %s from %s", connection.id, websocket.remote_address)
        try:
            async for message in websocket:
                self.dispatcher.on_inbound_raw(connection, message)
        except websockets.ConnectionClosedError as e:
            logger.info("Connection %s closed with error: %s", connection.id, e)
        finally:
            self.dispatcher.on_connection_closed(connection)
            await connection.stop()
            logger.info("Disconnected %s", connection.id)

    async def serve(self):
        async with websockets.serve(self.handler, self.host, self.port):
            logger.info("Starting WebSocket server on port %d", self.port)
            await asyncio.Future()


def main(argv=None):
    parser = argparse.ArgumentParser(description="WebSocket chat relay")
    parser.add_argument("--config", help="path to the JSON settings file")
    parser.add_argument("--port", type=int, help="listen port (overrides wsPort)")
    parser.add_argument("--host", help="listen address")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    config = load_config(args.config)
    server = RelayServer(args.port or config.listen_port, args.host or config.host)
    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        logger.info("Server stopped")


if __name__ == "__main__":
    main()
