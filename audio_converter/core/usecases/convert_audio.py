"""
Convert audio use case.

When an audio object is uploaded to the bucket, a mono 16 kHz FLAC copy is
generated next to it under ``<name>_output.flac``.
"""
from ..exceptions import AudioConverterError
from ..models.upload_event import (
    OUTPUT_CHANNELS,
    OUTPUT_CONTENT_TYPE,
    OUTPUT_FORMAT,
    OUTPUT_SAMPLE_RATE,
    ConversionResult,
    UploadEvent,
)
from ..ports.storage_service import ObjectStoragePort
from ..ports.transcoder import PipelineFactory, TranscodingError
from ..services.pipeline_runner import run_pipeline
from ...infrastructure.logging.log_config import get_logger

logger = get_logger(__name__)


class ConvertAudioUseCase:
    """
    Orchestrates one conversion: guard checks, stream acquisition and the
    wait for the transcoding pipeline.
    """

    def __init__(self, storage: ObjectStoragePort, pipeline_factory: PipelineFactory):
        self.storage = storage
        self.pipeline_factory = pipeline_factory

    async def handle(self, event: UploadEvent) -> ConversionResult:
        """
        Convert the uploaded object described by ``event``.

        Returns:
            ConversionResult with status ``converted`` or ``skipped``

        Raises:
            StorageError: If a stream cannot be opened, read or written
            TranscodingError: If ffmpeg is unavailable or fails
        """
        log_context = {"bucket": event.bucket, "name": event.name, "content_type": event.content_type}

        # Exit if this is triggered on a file that is not an audio.
        if not event.is_audio:
            logger.info("This is not an audio.", extra={'extra_fields': log_context})
            return ConversionResult(event.bucket, event.name, "skipped", skip_reason="not_audio")

        # Exit if the audio is already converted.
        if event.is_converted_output:
            logger.info("Already a converted audio.", extra={'extra_fields': log_context})
            return ConversionResult(event.bucket, event.name, "skipped", skip_reason="already_converted")

        target_path = event.output_path

        logger.info("Streaming audio", extra={'extra_fields': {**log_context, "target": target_path}})

        read_stream = self.storage.open_read(event.bucket, event.name)
        try:
            logger.info("Created read stream", extra={'extra_fields': log_context})
            write_stream = self.storage.open_write(event.bucket, target_path, OUTPUT_CONTENT_TYPE)
            logger.info("Created write stream", extra={'extra_fields': {"bucket": event.bucket, "target": target_path}})

            pipeline = (
                self.pipeline_factory(read_stream)
                .audio_channels(OUTPUT_CHANNELS)
                .audio_frequency(OUTPUT_SAMPLE_RATE)
                .format(OUTPUT_FORMAT)
                .output(write_stream)
            )

            try:
                await run_pipeline(pipeline)
            except AudioConverterError:
                raise
            except Exception as e:
                raise TranscodingError(f"Transcoding pipeline failed for {event.name}: {e}") from e
        finally:
            read_stream.close()

        logger.info(f"Output audio uploaded to {target_path}", extra={'extra_fields': {
            "bucket": event.bucket,
            "source": event.name,
            "target": target_path
        }})

        return ConversionResult(event.bucket, event.name, "converted", output_path=target_path)
