"""
Error taxonomy shared by every scraper

Every failure a scraper raises is a ScrapingError tagged with an ErrorKind,
so callers can either catch a subclass or switch on ``error.kind``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    COMPETITION_CLOSED = "competition_closed"
    UPSTREAM = "upstream"


class ScrapingError(Exception):
    """Base scraping failure carrying an HTTP-style status and a machine-readable code"""

    def __init__(self, message: str, code: str = "SCRAPING_ERROR", status: int = 500,
                 kind: ErrorKind = ErrorKind.UPSTREAM, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.kind = kind
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        payload = {'error': self.message, 'code': self.code, 'kind': self.kind.value}
        if self.detail is not None:
            payload['details'] = self.detail
        return payload

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, code={self.code!r}, status={self.status})"


class CompetitionClosedError(ScrapingError):
    """The competition listing is not published yet (alert box on the page)"""

    def __init__(self):
        super().__init__("Competition is not open", "COMPETITION_CLOSED", 404,
                         kind=ErrorKind.COMPETITION_CLOSED)


class NotFoundError(ScrapingError):
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", "NOT_FOUND", 404, kind=ErrorKind.NOT_FOUND)
        self.resource = resource


class ValidationError(ScrapingError):
    """Caller-supplied parameters failed their schema; ``detail`` holds the field errors"""

    def __init__(self, message: str = "Invalid data", errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, "VALIDATION_ERROR", 400, kind=ErrorKind.VALIDATION,
                         detail=errors or [])

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return self.detail


def access_denied(url: str) -> ScrapingError:
    return ScrapingError(f"Access denied for {url}", "ACCESS_DENIED", 403)


def http_error(url: str, status: int) -> ScrapingError:
    return ScrapingError(f"Request failed ({status}): {url}", "HTTP_ERROR", status)


def network_error(url: str) -> ScrapingError:
    return ScrapingError(f"Unable to load page: {url}", "NETWORK_ERROR", 503)


def parsing_error(message: str) -> ScrapingError:
    return ScrapingError(message, "PARSING_ERROR", 500)


def error_response(error: BaseException) -> Tuple[int, Dict[str, Any]]:
    """Map any exception to the (status, payload) pair a caller should return"""
    if isinstance(error, ScrapingError):
        return error.status, error.to_dict()
    return 500, {'error': "Internal server error", 'code': "INTERNAL_ERROR"}
