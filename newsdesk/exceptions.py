class AdminRequired(Exception):
    """Raised by the admin guard; handled as a redirect to the login page."""


class UploadError(Exception):
    """A rejected file upload, reported to the client as JSON."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
