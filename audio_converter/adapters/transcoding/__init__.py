from .ffmpeg_pipeline import FFmpegPipeline, resolve_ffmpeg_path

__all__ = ['FFmpegPipeline', 'resolve_ffmpeg_path']
