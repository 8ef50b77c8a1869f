class StoreError(Exception):
    """Base class for rejections raised by the JSON stores."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    status_code = 400


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 409


class RegistrationError(StoreError):
    # ride full, missing fields, bad access code
    status_code = 400
