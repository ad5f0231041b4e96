#!/usr/bin/env python3
"""
Unit tests for AWSConfigManager.
"""
from unittest.mock import patch

import pytest

from audio_converter.infrastructure.aws.aws_config import AWSConfigManager
from audio_converter.infrastructure.config.infrastructure_settings import ConverterSettings
from tests.utils.mock_helpers import MockHelpers


@pytest.mark.unit
def test_s3_client_is_created_once(test_settings):
    manager = AWSConfigManager(test_settings)

    with patch('audio_converter.infrastructure.aws.aws_config.boto3.client') as mock_client:
        first = manager.s3_client
        second = manager.s3_client

    assert first is second
    mock_client.assert_called_once()
    kwargs = mock_client.call_args.kwargs
    assert kwargs['service_name'] == 's3'
    assert kwargs['region_name'] == 'us-east-1'
    assert 'endpoint_url' not in kwargs


@pytest.mark.unit
def test_local_endpoint_is_passed_through(monkeypatch):
    monkeypatch.setenv("S3_ENDPOINT_URL", "http://localhost:9000")
    monkeypatch.setenv("S3_USE_SSL", "false")
    manager = AWSConfigManager(ConverterSettings(_env_file=None))

    with patch('audio_converter.infrastructure.aws.aws_config.boto3.client') as mock_client:
        manager.s3_client

    kwargs = mock_client.call_args.kwargs
    assert kwargs['endpoint_url'] == "http://localhost:9000"
    assert kwargs['use_ssl'] is False


@pytest.mark.unit
def test_retry_configuration(test_settings):
    manager = AWSConfigManager(test_settings)

    assert manager._boto_config.retries == {'max_attempts': 3, 'mode': 'adaptive'}
    assert manager._boto_config.max_pool_connections == 10


@pytest.mark.unit
def test_handle_aws_error_logs_client_error(test_settings):
    manager = AWSConfigManager(test_settings)
    error = MockHelpers.create_client_error('AccessDenied', 'GetObject')

    with patch('audio_converter.infrastructure.aws.aws_config.logger') as mock_logger:
        manager.handle_aws_error(error, "open_read", "b/clip.wav")

    messages = [c.args[0] for c in mock_logger.error.call_args_list]
    assert messages == ["AWS ClientError occurred", "AWS access denied"]
    details = mock_logger.error.call_args_list[0].kwargs['extra']['extra_fields']
    assert details['error_code'] == 'AccessDenied'
    assert details['request_id'] == 'req-1'
