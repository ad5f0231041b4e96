"""
Ports (interfaces) the conversion use case depends on.
"""

from .storage_service import ObjectStoragePort, StorageError, WritableObjectStream
from .transcoder import (
    PipelineFactory,
    TranscoderUnavailableError,
    TranscodingError,
    TranscodingPipelinePort,
)

__all__ = [
    'ObjectStoragePort',
    'StorageError',
    'WritableObjectStream',
    'PipelineFactory',
    'TranscoderUnavailableError',
    'TranscodingError',
    'TranscodingPipelinePort',
]
