"""Domain errors raised by services and rendered by the handlers in staycost.main."""


class StayCostError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StayCostError):
    """Malformed input, bad cross-reference, or a referenced entity that is missing."""

    status_code = 400


class NotFoundError(StayCostError):
    status_code = 404


class ConflictError(StayCostError):
    """Deleting something that is still referenced elsewhere."""

    status_code = 409
