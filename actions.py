import logging
import time
from types import MappingProxyType
from typing import Callable, Dict

from broadcast import broadcast, send_json
from errors import AlreadyJoined, MissingField
from registry import ClientRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[ClientRegistry, object, dict], None]

_handlers: Dict[str, Handler] = {}


def action(name: str):
    def decorator(fn: Handler) -> Handler:
        _handlers[name] = fn
        return fn
    return decorator


def _require(envelope: dict, field: str):
    value = envelope.get(field)
    if value is None:
        raise MissingField(field)
    return value


@action("joinChat")
def join(registry: ClientRegistry, connection, envelope: dict) -> None:
    if connection in registry:
        raise AlreadyJoined()
    nickname = _require(envelope, "nickname")

    # announce before adding so the newcomer doesn't get its own join
    broadcast(registry, {"action": "clientJoin", "nickname": nickname})

    connection.display_name = nickname
    registry.add(connection)
    logger.info("Client %s joined as %r", connection.id, nickname)

    send_json(connection, {
        "action": "welcomeClient",
        "nickname": nickname,
        "message": f"Welcome {nickname}!",
    })


@action("leaveChat")
def leave(registry: ClientRegistry, connection, envelope: dict = None) -> None:
    nickname = connection.display_name
    if not registry.remove(connection):
        return
    logger.info("Client %s (%r) left", connection.id, nickname)
    broadcast(registry, {"action": "clientLeave", "nickname": nickname})


@action("sendChat")
def send_chat(registry: ClientRegistry, connection, envelope: dict) -> None:
    message = _require(envelope, "message")
    broadcast(registry, {
        "action": "incomingChat",
        "data": {
            "time": int(time.time() * 1000),
            "name": connection.display_name,
            "content": message,
        },
    }, origin=connection)


@action("changeNickname")
def rename(registry: ClientRegistry, connection, envelope: dict) -> None:
    nickname = _require(envelope, "nickname")
    old_nickname = connection.display_name
    connection.display_name = nickname

    # unlike join/leave, the renamed client gets this one too
    broadcast(registry, {
        "action": "nicknameChange",
        "oldNickname": old_nickname,
        "newNickname": nickname,
    })


ACTIONS = MappingProxyType(dict(_handlers))
