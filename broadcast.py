import json
import logging

from registry import ClientRegistry

logger = logging.getLogger(__name__)


def encode(payload: dict) -> str:
    # NaN/Infinity are not JSON and most clients can't parse them
    return json.dumps(payload, allow_nan=False)


def send_json(connection, payload: dict) -> None:
    """Reply to a single connection."""
    connection.send(encode(payload))


def broadcast(registry: ClientRegistry, envelope: dict, origin=None) -> int:
    """
    Send ``envelope`` to every member of ``registry``.

    The frames are encoded once before the fanout starts: one shared frame
    for everybody and, for envelopes with a ``data`` mapping, a second one
    flagged ``me`` for ``origin``. ``envelope`` itself is never modified, and
    an envelope that can't be encoded fails before anyone is sent anything.
    Members whose connection is no longer open are evicted during the same
    pass instead of being sent to.

    Returns the number of members the envelope was sent to.
    """
    if not len(registry):
        return 0

    shared = encode(envelope)
    own = shared
    if origin is not None and isinstance(envelope.get("data"), dict):
        own = encode({**envelope, "data": {**envelope["data"], "me": True}})

    sent = 0
    for client in registry:
        if client.is_open:
            client.send(own if client is origin else shared)
            sent += 1
        else:
            registry.remove(client)
            logger.warning("Found & deleted closed client %s (%s)", client.id, client.display_name)
    return sent
