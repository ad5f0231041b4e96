"""
Storage event parsing for the audio converter Lambda.

Two trigger shapes are accepted:

- an object-finalize descriptor carrying ``bucket``, ``name`` and
  ``contentType`` at the top level;
- an S3 notification with one or more ``Records``. S3 does not include the
  content type in notifications, so it is looked up through the injected
  callable (a HEAD request in production).
"""
import json
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote_plus

from ...core.exceptions import InvalidEventError
from ...core.models.upload_event import UploadEvent
from ...infrastructure.logging.log_config import get_logger

logger = get_logger(__name__)

ContentTypeLookup = Callable[[str, str], str]


class StorageEventParser:
    """
    Parser for the events that trigger the conversion Lambda.
    """

    def __init__(self, content_type_lookup: Optional[ContentTypeLookup] = None):
        """
        Args:
            content_type_lookup: ``(bucket, key) -> mime type`` used for S3
                notifications; without it their content type is left empty
        """
        self.content_type_lookup = content_type_lookup

    def parse_event(self, event: Dict[str, Any]) -> List[UploadEvent]:
        """
        Parse a Lambda event into upload events.

        Args:
            event: Lambda event payload

        Returns:
            Upload events in delivery order (may be empty)

        Raises:
            InvalidEventError: If the payload matches no known shape
        """
        if not isinstance(event, dict):
            raise InvalidEventError("Event payload must be a JSON object", event)

        if 'Records' in event:
            return self._parse_s3_notification(event['Records'])

        if 'bucket' in event and 'name' in event:
            upload_event = UploadEvent.from_dict(event)
            logger.debug("Parsed object event", extra={'extra_fields': {
                "bucket": upload_event.bucket,
                "name": upload_event.name
            }})
            return [upload_event]

        raise InvalidEventError(
            f"Unrecognized event shape with keys: {sorted(event.keys())}", event
        )

    def _parse_s3_notification(self, records: Any) -> List[UploadEvent]:
        if not isinstance(records, list):
            raise InvalidEventError("S3 notification Records must be a list", records)

        upload_events = []
        for record in records:
            upload_event = self._parse_single_record(record)
            if upload_event is not None:
                upload_events.append(upload_event)

        logger.info("Parsed S3 notification", extra={'extra_fields': {
            "total_records": len(records),
            "upload_events": len(upload_events)
        }})
        return upload_events

    def _parse_single_record(self, record: Dict[str, Any]) -> Optional[UploadEvent]:
        if not isinstance(record, dict) or record.get('eventSource') != 'aws:s3':
            logger.debug("Non-S3 record ignored", extra={'extra_fields': {
                "event_source": record.get('eventSource') if isinstance(record, dict) else None
            }})
            return None

        event_name = record.get('eventName', '')
        if not event_name.startswith('ObjectCreated'):
            logger.debug("Not an ObjectCreated event", extra={'extra_fields': {"event_name": event_name}})
            return None

        try:
            bucket = record['s3']['bucket']['name']
            # URL-decode the object key (handles spaces and special chars)
            key = unquote_plus(record['s3']['object']['key'])
        except (KeyError, TypeError) as e:
            raise InvalidEventError(
                f"Invalid S3 record structure, missing {e}: {json.dumps(record, default=str)}", record
            ) from e

        content_type = ""
        if self.content_type_lookup is not None:
            content_type = self.content_type_lookup(bucket, key)

        return UploadEvent(bucket=bucket, name=key, content_type=content_type)
