from typing import Optional


class LinkSimError(RuntimeError):
    """Base class for every error raised by linksim."""


class EventCategoryError(LinkSimError):
    """An event was requested with a category that does not exist."""


class BufferOverflowError(LinkSimError):
    """A packet was admitted into a buffer with no space left."""


class BufferUnderflowError(LinkSimError):
    """The head of an empty buffer was served."""


class ConfigError(LinkSimError):
    """Simulation parameters were rejected before the run."""


class TraceFormatError(LinkSimError):
    def __init__(
        self, message: str, filename: Optional[str] = None, lineno: Optional[int] = None
    ):
        self.filename = filename
        self.lineno = lineno
        if filename is not None and lineno is not None:
            message = f"{filename}:{lineno}: {message}"
        elif filename is not None:
            message = f"{filename}: {message}"
        super().__init__(message)
