"""
AWS client configuration for the audio converter Lambda.

Provides a lazily created S3 client with Lambda-friendly retry and pool
settings, plus structured logging of AWS service errors.
"""
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, NoCredentialsError

from audio_converter.infrastructure.config.infrastructure_settings import (
    ConverterSettings,
    converter_settings,
)
from audio_converter.infrastructure.logging.log_config import get_logger

logger = get_logger(__name__)


class AWSConfigManager:
    """
    Centralized AWS client management.

    The client is created on first use and reused afterwards, so warm
    Lambda invocations share one connection pool. Nothing is mutated
    after creation.
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self._settings = settings or converter_settings
        self._s3_client = None

        self._boto_config = Config(
            region_name=self._settings.aws_region,
            retries={
                'max_attempts': self._settings.aws_max_retry_attempts,
                'mode': 'adaptive'
            },
            max_pool_connections=self._settings.aws_max_pool_connections,
            signature_version=self._settings.s3_signature_version
        )

    @property
    def s3_client(self):
        """
        Get or create S3 client with proper configuration.

        Raises:
            NoCredentialsError: If AWS credentials are not available
        """
        if self._s3_client is None:
            try:
                self._s3_client = self._create_s3_client()
                logger.debug("S3 client created", extra={'extra_fields': {
                    "region": self._settings.aws_region,
                    "endpoint_url": self._settings.s3_endpoint_url
                }})
            except NoCredentialsError:
                logger.error("AWS credentials not found for S3 client")
                raise
        return self._s3_client

    def _create_s3_client(self):
        kwargs = {
            'service_name': 's3',
            'config': self._boto_config,
            'region_name': self._settings.aws_region
        }
        if self._settings.use_local_s3:
            kwargs.update({
                'endpoint_url': self._settings.s3_endpoint_url,
                'use_ssl': self._settings.s3_use_ssl
            })
        return boto3.client(**kwargs)

    def handle_aws_error(self, error: Exception, operation: str, resource: str = "") -> None:
        """
        Log an AWS service error with whatever detail the error carries.

        Args:
            error: The AWS error that occurred
            operation: Description of the operation that failed
            resource: Resource identifier (bucket, key, etc.)
        """
        if isinstance(error, ClientError):
            error_info = error.response.get('Error', {})
            error_code = error_info.get('Code', 'Unknown')

            logger.error("AWS ClientError occurred", extra={'extra_fields': {
                "operation": operation,
                "resource": resource,
                "error_code": error_code,
                "error_message": error_info.get('Message', ''),
                "request_id": error.response.get('ResponseMetadata', {}).get('RequestId')
            }})

            if error_code == 'NoSuchBucket':
                logger.error("S3 bucket does not exist", extra={'extra_fields': {"resource": resource}})
            elif error_code in ('AccessDenied', '403'):
                logger.error("AWS access denied", extra={'extra_fields': {"operation": operation}})

        elif isinstance(error, NoCredentialsError):
            logger.error("AWS credentials not available", extra={'extra_fields': {
                "operation": operation,
                "resource": resource
            }})
        else:
            logger.error("Unexpected AWS error", extra={'extra_fields': {
                "operation": operation,
                "resource": resource,
                "error": str(error),
                "error_type": type(error).__name__
            }})
