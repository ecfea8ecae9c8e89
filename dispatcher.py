import json
import logging
from typing import Mapping, Optional, Union

from actions import ACTIONS, Handler, leave
from broadcast import send_json
from errors import MalformedPayload, MissingField, RelayError, UnknownAction
from registry import ClientRegistry

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are accepted by json.loads but aren't JSON
    raise MalformedPayload()


class Dispatcher:
    """Routes inbound envelopes to action handlers and turns client errors into replies."""

    def __init__(self, registry: Optional[ClientRegistry] = None,
                 actions: Mapping[str, Handler] = ACTIONS):
        self.registry = registry if registry is not None else ClientRegistry()
        self.actions = actions

    def on_inbound_raw(self, connection, raw: Union[str, bytes]) -> None:
        logger.debug("Message received from %s: %r", connection.id, raw)
        try:
            envelope = self._parse(raw)
        except MalformedPayload as e:
            self._reply_error(connection, e)
            return
        self.on_parsed(connection, envelope)

    def on_parsed(self, connection, envelope: dict) -> None:
        try:
            handler = self._lookup(envelope)
            handler(self.registry, connection, envelope)
        except RelayError as e:
            self._reply_error(connection, e)
        except (RecursionError, ValueError):
            # fields that parsed but can't be encoded again for the fanout
            logger.warning("Unencodable payload from %s", connection.id)
            self._reply_error(connection, MalformedPayload())

    def on_connection_closed(self, connection) -> None:
        leave(self.registry, connection, {})

    def _parse(self, raw: Union[str, bytes]) -> dict:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise MalformedPayload()
        try:
            envelope = json.loads(raw, parse_constant=_reject_constant)
        except (json.JSONDecodeError, RecursionError):
            raise MalformedPayload()
        if not isinstance(envelope, dict):
            raise MalformedPayload()
        return envelope

    def _lookup(self, envelope: dict) -> Handler:
        name = envelope.get("action")
        if name is None:
            raise MissingField("action")
        if not isinstance(name, str) or name not in self.actions:
            raise UnknownAction()
        return self.actions[name]

    def _reply_error(self, connection, error: RelayError) -> None:
        logger.info("Error reply to %s: %s", connection.id, error.message)
        send_json(connection, {"error": error.message})
