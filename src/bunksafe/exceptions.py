"""Exception classes raised by the write-side workflows."""


class BunkSafeError(Exception):
    """Base application exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BunkSafeError):
    """Input rejected before touching the store."""


class NotFoundError(BunkSafeError):
    """A referenced record does not exist."""

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class UsernameLockedError(BunkSafeError):
    """The stored username cannot be changed once set."""

    def __init__(self, message: str = "Username cannot be changed once set"):
        super().__init__(message)


class DataLoadError(BunkSafeError):
    """A record set could not be read from the store."""

    def __init__(self, record_set: str, cause: Exception):
        self.record_set = record_set
        self.cause = cause
        super().__init__(f"Failed to load {record_set}: {cause}")
