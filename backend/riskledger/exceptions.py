"""
Error taxonomy shared by the derivation engine and its cascades.

    ValidationError          caller input outside the allowed domain; raised before any write
    NotFoundError            a referenced parent record is missing at cascade time
    CollaboratorUnavailable  the record store (or one of its tables) cannot be reached

Routers never catch these; main.py maps them onto HTTP responses.
"""


class EngineError(Exception):
    """Base class for every error raised by the engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    pass


class NotFoundError(EngineError):
    def __init__(self, collection: str, record_id: int | None):
        super().__init__(f"{collection} record {record_id} does not exist")
        self.collection = collection
        self.record_id = record_id


class CollaboratorUnavailable(EngineError):
    def __init__(self, collection: str, cause: Exception | None = None):
        super().__init__(f"record store unavailable for '{collection}'")
        self.collection = collection
        self.cause = cause
