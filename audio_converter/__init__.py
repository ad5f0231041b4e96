"""
Audio Converter Lambda Function.

Triggered when an object is uploaded to a storage bucket. Audio objects are
streamed through ffmpeg and a mono, 16 kHz FLAC copy is written next to the
original as ``<name>_output.flac``.

Architecture:
- core: upload event model, ports and the conversion use case
- adapters: S3 storage, ffmpeg pipeline and trigger event parsing
- application: dependency wiring
- presentation: the Lambda entry point
"""

__version__ = "1.0.0"
