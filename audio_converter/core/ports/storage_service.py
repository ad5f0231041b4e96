"""
Object storage port for the audio converter.
Defines the stream-oriented interface the conversion use case depends on.
"""
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Protocol

from ..exceptions import AudioConverterError


class WritableObjectStream(Protocol):
    """Byte sink that becomes a stored object once closed."""

    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...

    def abort(self) -> None: ...


class ObjectStoragePort(ABC):
    """
    Abstract interface for object storage streaming operations.

    Objects are addressed by (bucket, path). Implementations must not
    buffer whole objects in memory.
    """

    @abstractmethod
    def open_read(self, bucket: str, path: str) -> BinaryIO:
        """
        Open a readable byte stream on an existing object.

        Raises:
            StorageError: If the object cannot be opened
        """
        pass

    @abstractmethod
    def open_write(self, bucket: str, path: str, content_type: str) -> WritableObjectStream:
        """
        Open a writable byte stream that creates or overwrites an object.

        Raises:
            StorageError: If the upload cannot be started
        """
        pass

    @abstractmethod
    def get_content_type(self, bucket: str, path: str) -> str:
        """
        Look up the declared MIME type of an object.

        Raises:
            StorageError: If the object metadata cannot be read
        """
        pass


class StorageError(AudioConverterError):
    """Exception raised for storage operation errors."""

    def __init__(self, message: str, operation: Optional[str] = None, file_path: Optional[str] = None):
        """
        Initialize storage error.

        Args:
            message: Error description
            operation: Storage operation that failed (open_read, open_write, upload_part, ...)
            file_path: Object path involved in the operation
        """
        super().__init__(message)
        self.operation = operation
        self.file_path = file_path

    def __str__(self):
        parts = [super().__str__()]
        if self.operation:
            parts.append(f"Operation: {self.operation}")
        if self.file_path:
            parts.append(f"File: {self.file_path}")
        return " | ".join(parts)
