"""Adapters binding the core ports to S3, ffmpeg and Lambda triggers."""
