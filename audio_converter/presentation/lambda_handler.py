"""
Lambda handler for converting uploaded audio objects.

Every event is processed to completion before the next one starts. Any
failure is logged and re-raised so the invocation is reported as failed and
the trigger infrastructure can decide whether to retry.
"""
import asyncio
import json
from typing import Any, Dict

from ..application.dependencies import get_container
from ..infrastructure.logging.log_config import (
    bind_invocation_context,
    get_logger,
    reset_invocation_context,
)

logger = get_logger(__name__)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda entry point for storage upload events.

    Args:
        event: Object-finalize descriptor or S3 notification
        context: AWS Lambda context object

    Returns:
        Dict with processing summary

    Raises:
        AudioConverterError: If the event is malformed or a conversion fails
    """
    request_token = bind_invocation_context(
        request_id=getattr(context, 'aws_request_id', 'unknown')
    )
    try:
        logger.info("Lambda function started", extra={'extra_fields': {
            "function_name": getattr(context, 'function_name', 'unknown')
        }})

        container = get_container()

        try:
            upload_events = container.get_event_parser().parse_event(event)
            use_case = container.get_convert_audio_use_case()

            results = []
            for upload_event in upload_events:
                object_token = bind_invocation_context(bucket=upload_event.bucket, object=upload_event.name)
                try:
                    results.append(asyncio.run(use_case.handle(upload_event)))
                finally:
                    reset_invocation_context(object_token)

        except Exception as e:
            logger.exception("Audio conversion failed", extra={'extra_fields': {
                "error_type": type(e).__name__,
                "error": str(e),
                "event": json.dumps(event, default=str) if event else None
            }})
            raise

        converted = [r for r in results if r.converted]

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Audio conversion completed',
                'converted': len(converted),
                'skipped': len(results) - len(converted),
                'results': [r.to_dict() for r in results]
            })
        }
    finally:
        reset_invocation_context(request_token)
