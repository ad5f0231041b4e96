"""
Transcoding pipeline port (interface).

A pipeline connects one readable byte stream to one writable byte stream
through an external transcoder. Completion is reported through ``end`` and
``error`` listeners, exactly one of which fires per run.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Optional

from ..exceptions import AudioConverterError


class TranscodingPipelinePort(ABC):
    """Port for a configurable, callback-driven transcoding pipeline."""

    @abstractmethod
    def audio_channels(self, channels: int) -> "TranscodingPipelinePort":
        pass

    @abstractmethod
    def audio_frequency(self, sample_rate: int) -> "TranscodingPipelinePort":
        pass

    @abstractmethod
    def format(self, output_format: str) -> "TranscodingPipelinePort":
        pass

    @abstractmethod
    def output(self, sink) -> "TranscodingPipelinePort":
        pass

    @abstractmethod
    def on(self, event: str, listener: Callable) -> "TranscodingPipelinePort":
        """
        Register a listener for ``end`` (no arguments) or ``error``
        (called with the exception).
        """
        pass

    @abstractmethod
    def start(self) -> asyncio.Task:
        """Start the pipeline on the running event loop."""
        pass


PipelineFactory = Callable[[BinaryIO], TranscodingPipelinePort]


class TranscodingError(AudioConverterError):
    """Raised when the transcoder cannot produce the requested output."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class TranscoderUnavailableError(TranscodingError):
    """Raised when the transcoder binary cannot be found or executed."""
