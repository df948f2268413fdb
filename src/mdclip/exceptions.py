"""mdclip custom exceptions."""


class MdclipError(Exception):
    """Base exception for all mdclip errors."""


class UrlError(MdclipError, ValueError):
    """A base URL could not be parsed as an absolute URL."""


class FetchError(MdclipError):
    """Errors while fetching a remote resource."""


class ConverterError(MdclipError):
    """Errors while converting a page."""


class ExtractionError(ConverterError):
    """No article content could be extracted from the page."""


class RenderError(ConverterError):
    """Errors while rendering Markdown output."""
