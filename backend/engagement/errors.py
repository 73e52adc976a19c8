"""Error taxonomy shared by the engine, the snapshot store and the HTTP layer.

Every error carries the HTTP status it maps to; ``main`` renders them as
``{"error": message}``.
"""


class EngagementError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingField(EngagementError):
    status_code = 400


class InvalidValue(EngagementError):
    status_code = 400


class MalformedBody(EngagementError):
    status_code = 400


class NotFound(EngagementError):
    status_code = 404


class Forbidden(EngagementError):
    status_code = 403


class StorageFailure(EngagementError):
    status_code = 500
