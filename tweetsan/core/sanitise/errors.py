class SanitiseError(Exception):
    """
    Base exception for document sanitisation failures.
    """

    pass


class DocumentParseError(SanitiseError):
    """
    Raised when a document is not valid JSON.
    """

    pass


ParseError = DocumentParseError
