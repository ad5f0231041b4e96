"""Custom exceptions for the audio converter."""


class AudioConverterError(Exception):
    """Base class for every failure the converter surfaces to its caller."""


class InvalidEventError(AudioConverterError):
    """Raised when a trigger payload cannot be turned into an upload event."""

    def __init__(self, message: str, event: object = None):
        super().__init__(message)
        self.event = event
