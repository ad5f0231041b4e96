"""
Shared test configuration and fixtures for the audio converter tests.
"""
import io
import os
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Setup Python path once for all tests
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment variables before settings are imported
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')

from tests.utils.mock_helpers import FakeWriteStream, MockHelpers


# ENVIRONMENT & CONFIGURATION FIXTURES

@pytest.fixture
def test_settings(monkeypatch):
    """Create ConverterSettings instance with test configuration."""
    for key, value in MockHelpers.create_test_environment_config().items():
        monkeypatch.setenv(key, value)

    from audio_converter.infrastructure.config.infrastructure_settings import ConverterSettings
    return ConverterSettings(_env_file=None)


# EVENT FIXTURES

@pytest.fixture
def object_event():
    """Object-finalize style trigger payload."""
    return MockHelpers.create_object_event()


@pytest.fixture
def mock_s3_event():
    """Sample S3 notification for testing."""
    return {
        'Records': [
            {
                'eventVersion': '2.1',
                'eventSource': 'aws:s3',
                'awsRegion': 'us-east-1',
                'eventName': 'ObjectCreated:Put',
                'eventTime': '2024-01-15T10:30:00.000Z',
                's3': {
                    'bucket': {'name': 'test-audio-uploads'},
                    'object': {
                        'key': 'recordings/my+clip.wav',
                        'size': 1048576
                    }
                }
            }
        ]
    }


@pytest.fixture
def mock_lambda_context():
    """Mock Lambda context for testing."""
    context = Mock()
    context.function_name = 'audio-converter'
    context.aws_request_id = 'test-request-id-123'
    context.invoked_function_arn = 'arn:aws:lambda:us-east-1:123456789012:function:audio-converter'
    context.get_remaining_time_in_millis.return_value = 30000
    return context


# MOCK FIXTURES

@pytest.fixture
def mock_s3_client() -> Mock:
    return MockHelpers.create_mock_s3_client()


@pytest.fixture
def mock_storage() -> Mock:
    return MockHelpers.create_mock_storage()


@pytest.fixture
def write_stream() -> FakeWriteStream:
    return FakeWriteStream()


# AUDIO FIXTURES

@pytest.fixture
def stereo_wav_bytes() -> bytes:
    """One second of a stereo 44.1 kHz sine tone encoded as 16-bit WAV."""
    np = pytest.importorskip("numpy")
    sf = pytest.importorskip("soundfile")

    sample_rate = 44100
    t = np.linspace(0, 1.0, sample_rate, endpoint=False)
    left = 0.5 * np.sin(2 * np.pi * 440 * t)
    right = 0.5 * np.sin(2 * np.pi * 660 * t)
    frames = np.stack([left, right], axis=1)

    buffer = io.BytesIO()
    sf.write(buffer, frames, sample_rate, format='WAV', subtype='PCM_16')
    return buffer.getvalue()
