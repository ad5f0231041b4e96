"""
Upload event domain model.

An upload event describes one newly created object in the store. It is
built once per trigger notification and discarded when the handler returns.
"""
import posixpath
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import InvalidEventError


AUDIO_CONTENT_TYPE_PREFIX = "audio/"
CONVERTED_SUFFIX = "_output.flac"

# Fixed output parameters of every conversion
OUTPUT_CHANNELS = 1
OUTPUT_SAMPLE_RATE = 16000
OUTPUT_FORMAT = "flac"
OUTPUT_CONTENT_TYPE = "audio/flac"

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def derive_output_path(object_path: str) -> str:
    """
    Compute where the converted audio for ``object_path`` is written.

    The last extension of the base name is replaced by ``_output.flac`` and
    the result stays in the same directory. There is no leading separator
    when the input has no directory.

    >>> derive_output_path("dir/clip.wav")
    'dir/clip_output.flac'
    >>> derive_output_path("clip.mp3")
    'clip_output.flac'
    """
    directory, file_name = posixpath.split(object_path)
    target_name = _EXTENSION_RE.sub("", file_name) + CONVERTED_SUFFIX
    return posixpath.join(directory, target_name)


@dataclass(frozen=True)
class UploadEvent:
    """Immutable descriptor of a single storage notification."""

    bucket: str
    name: str
    content_type: str = ""

    def __post_init__(self):
        if not self.bucket:
            raise InvalidEventError("Upload event is missing the bucket")
        if not self.name:
            raise InvalidEventError("Upload event is missing the object name")

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "UploadEvent":
        """
        Build an event from an object-finalize style descriptor.

        Expected keys are ``bucket``, ``name`` and optionally ``contentType``.
        """
        if not isinstance(payload, dict):
            raise InvalidEventError("Upload event payload must be a mapping", payload)

        return cls(
            bucket=payload.get("bucket") or "",
            name=payload.get("name") or "",
            content_type=payload.get("contentType") or "",
        )

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.name)

    @property
    def is_audio(self) -> bool:
        return self.content_type.startswith(AUDIO_CONTENT_TYPE_PREFIX)

    @property
    def is_converted_output(self) -> bool:
        # Purely name based: an upload that happens to carry the suffix is skipped too
        return self.file_name.endswith(CONVERTED_SUFFIX)

    @property
    def output_path(self) -> str:
        return derive_output_path(self.name)


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one successful handler invocation."""

    bucket: str
    source_path: str
    status: str
    output_path: Optional[str] = None
    skip_reason: Optional[str] = None

    @property
    def converted(self) -> bool:
        return self.status == "converted"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'bucket': self.bucket,
            'source_path': self.source_path,
            'status': self.status
        }
        if self.output_path:
            result['output_path'] = self.output_path
        if self.skip_reason:
            result['skip_reason'] = self.skip_reason
        return result
