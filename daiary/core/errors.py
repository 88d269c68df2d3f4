"""Error taxonomy shared by the services and the HTTP layer.

Each error carries the HTTP status the API answers with. Services raise
these; only ``daiary.main`` turns them into responses.
"""


class DaiaryError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(DaiaryError):
    """Client-correctable input problem. Never reaches the model."""
    status_code = 400


class UpstreamFormatError(DaiaryError):
    """The model reply could not be reduced to the required JSON shape."""
    status_code = 502

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw

    def to_dict(self) -> dict:
        return {"error": self.message, "raw": self.raw}


class TransportError(DaiaryError):
    status_code = 500


class ConfigurationError(DaiaryError):
    status_code = 500


class PersistenceError(DaiaryError):
    status_code = 500


class ProfileNotFound(DaiaryError):
    status_code = 404
