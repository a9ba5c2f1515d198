"""
Exceptions raised by the Fusion Engine.

``fuse()`` never lets these escape; they exist for callers that parse
payloads directly and want strict validation.
"""


class FusionError(Exception):
    """Base class for fusion engine errors."""


class PayloadError(FusionError):
    """An upstream analysis payload does not have the expected shape."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Invalid {source} payload: {message}")
