"""
Bridge from a callback-driven transcoding pipeline to a single awaitable.
"""
import asyncio

from ..ports.transcoder import TranscodingPipelinePort


async def run_pipeline(pipeline: TranscodingPipelinePort) -> None:
    """
    Start ``pipeline`` and wait for its terminal event.

    Resolves when ``end`` fires and raises the reported exception when
    ``error`` fires. Whichever fires first wins; later events are ignored.
    """
    outcome = asyncio.get_running_loop().create_future()

    def _on_end() -> None:
        if not outcome.done():
            outcome.set_result(None)

    def _on_error(error: BaseException) -> None:
        if not outcome.done():
            outcome.set_exception(error)

    pipeline.on("end", _on_end).on("error", _on_error)
    task = pipeline.start()

    try:
        await outcome
    finally:
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)
