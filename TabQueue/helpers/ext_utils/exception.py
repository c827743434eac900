class QueueError(Exception):
    """Base error for queue handling."""


class MissingContextId(QueueError):
    def __init__(self, message: str = "Missing context id"):
        super().__init__(message)


class UnknownRequest(QueueError):
    def __init__(self, message_type=None):
        self.message_type = message_type
        super().__init__(f"Unknown message type: {message_type!r}")


class PersistenceError(QueueError):
    pass
