class JcrRestClientError(Exception):
    """Base class for every error raised by this client."""


class TransportError(JcrRestClientError):
    """The request could not be sent or no response was received."""


class ServerValidationError(JcrRestClientError):
    def __init__(self, server_url: str, status_code: int | None = None, message: str | None = None) -> None:
        self.server_url = server_url
        self.status_code = status_code
        if message is None:
            message = f"Unable to validate server '{server_url}' (HTTP response code {status_code})"
        super().__init__(message)


class ProtocolDecodeError(JcrRestClientError):
    """A response body was not valid JSON or did not have the expected shape."""

    def __init__(self, message: str, body: str) -> None:
        self.body = body
        super().__init__(f"{message}: {body!r}")


class RemoteOperationError(JcrRestClientError):
    """The server answered a request with an unexpected status code."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class InvalidQueryError(RemoteOperationError):
    def __init__(self, response: str, status_code: int | None = None) -> None:
        self.response = response
        super().__init__(f"The query was invalid: {response}", status_code)


class InvalidLanguageError(JcrRestClientError, ValueError):
    def __init__(self, language: str, valid_languages: list[str]) -> None:
        self.language = language
        self.valid_languages = valid_languages
        super().__init__(f"Unsupported query language '{language}'. Supported: {valid_languages}")


class LocalIOError(JcrRestClientError, OSError):
    """A local file could not be inspected or read."""
