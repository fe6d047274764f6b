"""Error hierarchy for portal fetch classification.

Transient failures (network, non-2xx status) may succeed when the request is
issued again; permanent failures (undecodable or empty payloads) will not.
The client's tenacity loop only retries TransientError.

Example usage with tenacity:
    AsyncRetrying(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
"""


class OrariError(Exception):
    """Base exception for all portal ingestion errors."""

    kind = "error"
    default_message = "Errore durante la comunicazione con UniVR."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TransientError(OrariError):
    """Temporary failure that may succeed on retry."""

    kind = "transient"


class HTTPStatusError(TransientError):
    """The portal answered with a non-2xx status code."""

    kind = "http_error"
    default_message = "Errore HTTP durante la comunicazione con UniVR."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(TransientError):
    """Timeout or transport failure before a response was received."""

    kind = "network_error"
    default_message = "Connessione al server UniVR non riuscita."


class PermanentError(OrariError):
    """Failure that won't succeed on retry."""

    kind = "permanent"


class InvalidURLError(PermanentError):
    kind = "invalid_url"
    default_message = "URL non valido per la richiesta UniVR."


class InvalidResponseError(PermanentError):
    """Root payload is not a JSON object."""

    kind = "invalid_response"
    default_message = "Risposta non valida dal server UniVR."


class InvalidEncodingError(PermanentError):
    """Response bytes could not be decoded as text."""

    kind = "invalid_encoding"
    default_message = "Impossibile leggere la risposta testuale del server UniVR."


class NoDataError(PermanentError):
    """Well-formed response that is empty once placeholders are filtered."""

    kind = "no_data"
    default_message = "Nessun dato restituito dal server UniVR."
