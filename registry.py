from typing import Dict, List


class ClientRegistry:
    """Connections that completed the join handshake, keyed by connection id."""

    def __init__(self):
        # connection id -> connection, in join order
        self._clients: Dict[int, object] = {}

    def __contains__(self, connection) -> bool:
        return self._clients.get(connection.id) is connection

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self):
        # iterate a copy so callers may remove while walking
        return iter(self.members())

    def members(self) -> List:
        return list(self._clients.values())

    def add(self, connection) -> None:
        self._clients[connection.id] = connection

    def remove(self, connection) -> bool:
        if connection not in self:
            return False
        del self._clients[connection.id]
        return True
