from typing import Optional


class MiseflowError(Exception):
    pass


class ExtractionError(MiseflowError):
    pass


class UnsupportedURLError(ExtractionError):
    """The URL cannot be extracted at all (bad scheme, no video id)."""


class FetchError(ExtractionError):
    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
