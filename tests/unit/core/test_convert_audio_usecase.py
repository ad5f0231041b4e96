#!/usr/bin/env python3
"""
Unit tests for ConvertAudioUseCase.
Storage and the transcoding pipeline are replaced with in-memory fakes.
"""
from unittest.mock import Mock, patch

import pytest

from audio_converter.core.models.upload_event import UploadEvent
from audio_converter.core.ports.storage_service import StorageError
from audio_converter.core.ports.transcoder import TranscodingError
from audio_converter.core.usecases.convert_audio import ConvertAudioUseCase
from tests.utils.mock_helpers import FakePipeline


def _logged_messages(mock_logger):
    return [c.args[0] for c in mock_logger.info.call_args_list]


def _use_case(storage, error=None):
    pipelines = []

    def factory(source):
        pipeline = FakePipeline(source, error=error)
        pipelines.append(pipeline)
        return pipeline

    return ConvertAudioUseCase(storage, factory), pipelines


@pytest.mark.unit
@pytest.mark.asyncio
async def test_non_audio_is_skipped(mock_storage):
    """Unit test: non-audio uploads never open a stream."""
    use_case, pipelines = _use_case(mock_storage)
    event = UploadEvent("b", "x.png", "image/png")

    with patch('audio_converter.core.usecases.convert_audio.logger') as mock_logger:
        result = await use_case.handle(event)

    assert result.status == "skipped"
    assert result.skip_reason == "not_audio"
    assert _logged_messages(mock_logger) == ["This is not an audio."]
    mock_storage.open_read.assert_not_called()
    mock_storage.open_write.assert_not_called()
    assert pipelines == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_converted_output_is_skipped(mock_storage):
    """Unit test: our own output does not trigger another conversion."""
    use_case, pipelines = _use_case(mock_storage)
    event = UploadEvent("b", "dir/clip_output.flac", "audio/flac")

    with patch('audio_converter.core.usecases.convert_audio.logger') as mock_logger:
        result = await use_case.handle(event)

    assert result.skip_reason == "already_converted"
    assert _logged_messages(mock_logger) == ["Already a converted audio."]
    mock_storage.open_read.assert_not_called()
    mock_storage.open_write.assert_not_called()
    assert pipelines == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_audio_is_converted_next_to_source(mock_storage):
    """Unit test: successful conversion wires streams and output parameters."""
    use_case, pipelines = _use_case(mock_storage)
    event = UploadEvent("b", "dir/clip.wav", "audio/wav")

    with patch('audio_converter.core.usecases.convert_audio.logger') as mock_logger:
        result = await use_case.handle(event)

    assert result.converted
    assert result.output_path == "dir/clip_output.flac"

    mock_storage.open_read.assert_called_once_with("b", "dir/clip.wav")
    mock_storage.open_write.assert_called_once_with("b", "dir/clip_output.flac", "audio/flac")

    pipeline = pipelines[0]
    assert pipeline.source is mock_storage.read_stream
    assert pipeline.sink is mock_storage.write_stream
    assert (pipeline.channels, pipeline.sample_rate, pipeline.output_format) == (1, 16000, "flac")

    assert mock_storage.write_stream.closed
    assert mock_storage.write_stream.getvalue() == b'RIFFfake'
    assert mock_storage.read_stream.closed

    messages = _logged_messages(mock_logger)
    assert "Created read stream" in messages
    assert "Created write stream" in messages
    assert messages[-1] == "Output audio uploaded to dir/clip_output.flac"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_root_level_object_has_no_leading_separator(mock_storage):
    use_case, _ = _use_case(mock_storage)

    result = await use_case.handle(UploadEvent("b", "clip.mp3", "audio/mpeg"))

    assert result.output_path == "clip_output.flac"
    mock_storage.open_write.assert_called_once_with("b", "clip_output.flac", "audio/flac")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_pipeline_error_propagates_without_success_log(mock_storage):
    """Unit test: the exact transcoder failure reaches the caller."""
    failure = TranscodingError("ffmpeg exited with code 1: invalid data", returncode=1)
    use_case, _ = _use_case(mock_storage, error=failure)

    with patch('audio_converter.core.usecases.convert_audio.logger') as mock_logger:
        with pytest.raises(TranscodingError) as exc_info:
            await use_case.handle(UploadEvent("b", "dir/clip.wav", "audio/wav"))

    assert exc_info.value is failure
    assert not any(m.startswith("Output audio uploaded to") for m in _logged_messages(mock_logger))
    assert mock_storage.read_stream.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unexpected_pipeline_error_is_wrapped(mock_storage):
    use_case, _ = _use_case(mock_storage, error=OSError("pipe closed"))

    with pytest.raises(TranscodingError, match="pipe closed") as exc_info:
        await use_case.handle(UploadEvent("b", "clip.wav", "audio/wav"))

    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_read_failure_propagates(mock_storage):
    mock_storage.open_read.side_effect = StorageError("S3 object not found: s3://b/clip.wav", "open_read", "clip.wav")
    use_case, pipelines = _use_case(mock_storage)

    with pytest.raises(StorageError, match="not found"):
        await use_case.handle(UploadEvent("b", "clip.wav", "audio/wav"))

    mock_storage.open_write.assert_not_called()
    assert pipelines == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_write_failure_closes_read_stream(mock_storage):
    mock_storage.open_write.side_effect = StorageError("denied", "open_write", "clip_output.flac")
    use_case, pipelines = _use_case(mock_storage)

    with pytest.raises(StorageError):
        await use_case.handle(UploadEvent("b", "clip.wav", "audio/wav"))

    assert mock_storage.read_stream.closed
    assert pipelines == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_handle_is_repeatable_for_same_event(mock_storage):
    """Redelivery rewrites the same target path."""
    use_case, _ = _use_case(mock_storage)
    event = UploadEvent("b", "dir/clip.wav", "audio/wav")

    first = await use_case.handle(event)
    mock_storage.open_read.return_value = Mock(read=Mock(return_value=b''), close=Mock())
    second = await use_case.handle(event)

    assert first.output_path == second.output_path
    assert [c.args[1] for c in mock_storage.open_write.call_args_list] == [
        "dir/clip_output.flac", "dir/clip_output.flac"
    ]
