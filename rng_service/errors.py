"""Exception types raised by the RNG service."""


class ApiError(Exception):
    """An error that is reported to the caller with its own status code."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ReservedUsernameError(ApiError):
    status_code = 405

    def __init__(self, username: str):
        super().__init__(f"The username '{username}' is reserved.")
        self.username = username


class UserNotFoundError(ApiError):
    status_code = 404

    def __init__(self, username: str):
        super().__init__(f"Could not find user '{username}'")
        self.username = username


class InvalidPagingError(ApiError):
    status_code = 400

    def __init__(self, parameter: str, raw_value: str, message: str | None = None):
        super().__init__(message or f"Conversion failed for {parameter} '{raw_value}'")
        self.parameter = parameter
        self.raw_value = raw_value


class AuthenticationError(ApiError):
    status_code = 401

    def __init__(self, message: str = "API Key does not match"):
        super().__init__(message)


class StoreError(Exception):
    """The persistence layer failed to execute a statement."""


class EntropyError(Exception):
    """The operating system entropy source could not produce random bits."""


class ConfigurationResetError(Exception):
    """The configuration file was invalid and has been replaced with defaults."""
