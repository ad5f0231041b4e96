from .upload_event import (
    AUDIO_CONTENT_TYPE_PREFIX,
    CONVERTED_SUFFIX,
    OUTPUT_CHANNELS,
    OUTPUT_CONTENT_TYPE,
    OUTPUT_FORMAT,
    OUTPUT_SAMPLE_RATE,
    ConversionResult,
    UploadEvent,
    derive_output_path,
)

__all__ = [
    'AUDIO_CONTENT_TYPE_PREFIX',
    'CONVERTED_SUFFIX',
    'OUTPUT_CHANNELS',
    'OUTPUT_CONTENT_TYPE',
    'OUTPUT_FORMAT',
    'OUTPUT_SAMPLE_RATE',
    'ConversionResult',
    'UploadEvent',
    'derive_output_path',
]
