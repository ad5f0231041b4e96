"""
Lambda entry point for the audio converter.

Configure the function handler as ``audio_converter.handler.lambda_handler``.
"""

from audio_converter.presentation.lambda_handler import lambda_handler

__all__ = ['lambda_handler']
