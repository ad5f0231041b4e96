"""
Dependency injection configuration for the audio converter.

Builds the storage adapter, the transcoding pipeline factory and the use
case from settings. The container is created once per process so warm
Lambda invocations reuse the S3 connection pool; nothing in it is mutated
after construction.
"""
from typing import BinaryIO, Optional

from ..adapters.event_parsers.storage_event_parser import StorageEventParser
from ..adapters.storage.s3_object_storage import S3ObjectStorage
from ..adapters.transcoding.ffmpeg_pipeline import FFmpegPipeline
from ..core.ports.storage_service import ObjectStoragePort
from ..core.usecases.convert_audio import ConvertAudioUseCase
from ..infrastructure.aws.aws_config import AWSConfigManager
from ..infrastructure.config.infrastructure_settings import ConverterSettings, converter_settings
from ..infrastructure.logging.log_config import get_logger

logger = get_logger(__name__)


class DependencyContainer:
    """
    Dependency injection container for the audio converter.
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self.settings = settings or converter_settings
        self._aws_config_manager: Optional[AWSConfigManager] = None
        self._storage_service: Optional[ObjectStoragePort] = None

        logger.debug("Dependency container initialized", extra={'extra_fields': {
            "environment": self.settings.environment
        }})

    def get_aws_config_manager(self) -> AWSConfigManager:
        if self._aws_config_manager is None:
            self._aws_config_manager = AWSConfigManager(self.settings)
        return self._aws_config_manager

    def get_storage_service(self) -> ObjectStoragePort:
        if self._storage_service is None:
            self._storage_service = S3ObjectStorage(
                self.get_aws_config_manager(),
                part_size=self.settings.upload_part_size
            )
        return self._storage_service

    def create_pipeline(self, source: BinaryIO) -> FFmpegPipeline:
        """Pipeline factory handed to the use case; one pipeline per conversion."""
        return FFmpegPipeline(
            source,
            ffmpeg_path=self.settings.ffmpeg_path,
            chunk_size=self.settings.stream_chunk_size
        )

    def get_event_parser(self) -> StorageEventParser:
        return StorageEventParser(content_type_lookup=self.get_storage_service().get_content_type)

    def get_convert_audio_use_case(self) -> ConvertAudioUseCase:
        return ConvertAudioUseCase(
            storage=self.get_storage_service(),
            pipeline_factory=self.create_pipeline
        )


_container: Optional[DependencyContainer] = None


def get_container() -> DependencyContainer:
    """Get the process-wide dependency container."""
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container
