class RelayError(Exception):
    """Client-caused error. The message is sent back as ``{"error": ...}``."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedPayload(RelayError):
    def __init__(self, message: str = "Invalid JSON format"):
        super().__init__(message)


class MissingField(RelayError):
    def __init__(self, field: str):
        super().__init__(f"{field} is missing")
        self.field = field


class UnknownAction(RelayError):
    def __init__(self, message: str = "No such action"):
        super().__init__(message)


class AlreadyJoined(RelayError):
    def __init__(self, message: str = "Client already joined"):
        super().__init__(message)
