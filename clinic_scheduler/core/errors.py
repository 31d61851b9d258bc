class InvalidArgument(ValueError):
    """Malformed time string, non-chronological window or non-positive duration."""


class BackendError(RuntimeError):
    """The clinic webhook backend could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
