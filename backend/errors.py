"""Error taxonomy for the analysis pipeline.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with.
"""


class SEOAnalysisError(Exception):
    """Base class for failures that abort an analysis."""

    kind = "analysis_failed"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class InvalidUrlError(SEOAnalysisError):
    """Input could not be turned into a well-formed http(s) URL."""

    kind = "invalid_url"
    status_code = 400


class FetchError(SEOAnalysisError):
    """The page could not be retrieved."""

    kind = "fetch_failed"
    status_code = 502


class FetchTimeoutError(FetchError):
    kind = "timeout"
    status_code = 408


class NotFoundError(FetchError):
    kind = "not_found"


class FetchConnectionError(FetchError):
    kind = "connection_refused"


class ForbiddenError(FetchError):
    kind = "forbidden"


class ParseError(SEOAnalysisError):
    """The fetched markup could not be turned into a document."""

    kind = "parse_error"
    status_code = 422
