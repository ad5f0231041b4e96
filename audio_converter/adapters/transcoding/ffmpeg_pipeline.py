"""
ffmpeg-backed transcoding pipeline.

The pipeline reads the source stream into ffmpeg's stdin and writes ffmpeg's
stdout into the sink, so neither side touches local disk. Blocking stream
calls run in worker threads; the process itself is driven by asyncio.

Usage:
    pipeline = (
        FFmpegPipeline(read_stream)
        .audio_channels(1)
        .audio_frequency(16000)
        .format("flac")
        .output(write_stream)
    )
    await run_pipeline(pipeline)
"""
import asyncio
import contextlib
import os
import shutil
import time
from typing import Callable, Dict, List, Optional

from ...core.ports.transcoder import (
    TranscoderUnavailableError,
    TranscodingError,
    TranscodingPipelinePort,
)
from ...infrastructure.logging.log_config import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
LAMBDA_LAYER_FFMPEG = "/opt/bin/ffmpeg"
STDERR_TAIL_CHARS = 2000

_EVENTS = ("end", "error")


def resolve_ffmpeg_path(explicit: Optional[str] = None) -> str:
    """
    Locate the ffmpeg binary.

    Order: explicit path, ffmpeg on PATH, the Lambda layer location. When
    nothing is found the bare name is returned and spawning reports it.
    """
    if explicit:
        return explicit

    found = shutil.which("ffmpeg")
    if found:
        return found

    if os.path.isfile(LAMBDA_LAYER_FFMPEG):
        return LAMBDA_LAYER_FFMPEG

    return "ffmpeg"


class FFmpegPipeline(TranscodingPipelinePort):
    """
    Single-use transcoding pipeline around one ffmpeg process.

    Exactly one of the ``end`` or ``error`` listeners fires per run. On
    ``end`` the sink has been closed; on ``error`` it has been aborted.
    """

    def __init__(self, source, ffmpeg_path: Optional[str] = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._source = source
        self._ffmpeg_path = ffmpeg_path
        self.chunk_size = chunk_size

        self._channels: Optional[int] = None
        self._sample_rate: Optional[int] = None
        self._format: Optional[str] = None
        self._sink = None

        self._listeners: Dict[str, List[Callable]] = {name: [] for name in _EVENTS}
        self._task: Optional[asyncio.Task] = None

    def audio_channels(self, channels: int) -> "FFmpegPipeline":
        if channels <= 0:
            raise ValueError("channel count must be positive")
        self._channels = channels
        return self

    def audio_frequency(self, sample_rate: int) -> "FFmpegPipeline":
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        self._sample_rate = sample_rate
        return self

    def format(self, output_format: str) -> "FFmpegPipeline":
        if not output_format:
            raise ValueError("output format cannot be empty")
        self._format = output_format
        return self

    def output(self, sink) -> "FFmpegPipeline":
        self._sink = sink
        return self

    def on(self, event: str, listener: Callable) -> "FFmpegPipeline":
        if event not in self._listeners:
            raise ValueError(f"Unknown pipeline event: {event}")
        self._listeners[event].append(listener)
        return self

    def build_command(self) -> List[str]:
        """Return the ffmpeg argv for the configured output."""
        missing = [
            name for name, value in (
                ("channels", self._channels),
                ("sample_rate", self._sample_rate),
                ("format", self._format),
                ("output", self._sink),
            ) if value is None
        ]
        if missing:
            raise ValueError(f"Pipeline is not fully configured, missing: {', '.join(missing)}")

        return [
            resolve_ffmpeg_path(self._ffmpeg_path),
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-ac", str(self._channels),
            "-ar", str(self._sample_rate),
            "-f", self._format,
            "pipe:1",
        ]

    def start(self) -> asyncio.Task:
        if self._task is not None:
            raise RuntimeError("Pipeline has already been started")

        command = self.build_command()
        self._task = asyncio.get_running_loop().create_task(self._run(command))
        return self._task

    async def _run(self, command: List[str]) -> None:
        started = time.perf_counter()
        try:
            await self._execute(command)
        except Exception as e:
            await asyncio.to_thread(self._abort_sink)
            logger.error("Transcoding pipeline failed", extra={'extra_fields': {
                "error_type": type(e).__name__,
                "error": str(e),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2)
            }})
            self._emit("error", e)
            return

        logger.info("Transcoding pipeline finished", extra={'extra_fields': {
            "duration_ms": round((time.perf_counter() - started) * 1000, 2)
        }})
        self._emit("end")

    async def _execute(self, command: List[str]) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise TranscoderUnavailableError(f"ffmpeg could not be started: {command[0]} ({e})") from e

        logger.debug("ffmpeg process started", extra={'extra_fields': {
            "pid": process.pid,
            "command": " ".join(command)
        }})

        stderr_task = asyncio.ensure_future(self._collect_stderr(process.stderr))
        pumps = [
            asyncio.ensure_future(self._pump_source(process.stdin)),
            asyncio.ensure_future(self._pump_sink(process.stdout)),
        ]

        try:
            await asyncio.gather(*pumps)
        except BaseException:
            for pump in pumps:
                pump.cancel()
            self._kill(process)
            await asyncio.gather(*pumps, return_exceptions=True)
            # A paused stdout transport never reports EOF, and wait() would block on it
            await self._discard_output(process.stdout)
            await process.wait()
            await asyncio.gather(stderr_task, return_exceptions=True)
            raise

        returncode = await process.wait()
        stderr_text = await stderr_task

        if returncode != 0:
            tail = stderr_text.strip()[-STDERR_TAIL_CHARS:]
            raise TranscodingError(
                f"ffmpeg exited with code {returncode}: {tail or 'no diagnostics'}",
                returncode=returncode,
                stderr=stderr_text
            )

        await asyncio.to_thread(self._sink.close)

    async def _pump_source(self, stdin: asyncio.StreamWriter) -> None:
        try:
            while True:
                chunk = await asyncio.to_thread(self._source.read, self.chunk_size)
                if not chunk:
                    break
                stdin.write(chunk)
                await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # ffmpeg stopped reading early; its exit status decides the outcome
            logger.debug("ffmpeg closed its input before the source was exhausted")
        finally:
            stdin.close()
            with contextlib.suppress(BrokenPipeError, ConnectionResetError):
                await stdin.wait_closed()

    async def _pump_sink(self, stdout: asyncio.StreamReader) -> None:
        while True:
            chunk = await stdout.read(self.chunk_size)
            if not chunk:
                break
            await asyncio.to_thread(self._sink.write, chunk)

    async def _discard_output(self, stdout: asyncio.StreamReader) -> None:
        while await stdout.read(self.chunk_size):
            pass

    @staticmethod
    async def _collect_stderr(stderr: asyncio.StreamReader) -> str:
        data = await stderr.read()
        return data.decode("utf-8", errors="replace")

    @staticmethod
    def _kill(process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()

    def _abort_sink(self) -> None:
        abort = getattr(self._sink, "abort", None)
        if abort is not None:
            abort()

    def _emit(self, event: str, *args) -> None:
        for listener in self._listeners[event]:
            listener(*args)
