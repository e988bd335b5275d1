"""
Event Envelope

Wire wrapper for a domain event: AMQP headers + serialized body.
The consumer triages on headers alone (routing, dead-lettering) before it touches the body.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Self
import uuid

import attrs

from src.platform.config.core_setting import settings


# ====== Wire Header Names =======
EVENT_TYPE_HEADER = 'EventType'
SOURCE_HEADER = 'Source'
VERSION_HEADER = 'Version'
CORRELATION_ID_HEADER = 'CorrelationId'

CONTENT_TYPE_JSON = 'application/json'


def _header_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode('utf-8', errors='replace')
    text = str(value).strip()
    return text or None


def _lookup_header(headers: Mapping[str, Any], name: str) -> str | None:
    """Header names are matched case-insensitively; values may be bytes or str."""
    if name in headers:
        return _header_value(headers[name])
    lowered = name.lower()
    for key, value in headers.items():
        if str(key).lower() == lowered:
            return _header_value(value)
    return None


@attrs.define(frozen=True)
class EventEnvelope:
    event_type: str
    body: bytes
    correlation_id: str = attrs.field(factory=lambda: str(uuid.uuid4()))
    message_id: str = attrs.field(factory=lambda: str(uuid.uuid4()))
    source: str = attrs.field(factory=lambda: settings.EVENT_SOURCE)
    version: str = attrs.field(factory=lambda: settings.EVENT_SCHEMA_VERSION)
    content_type: str = CONTENT_TYPE_JSON
    timestamp: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))

    @property
    def headers(self) -> dict[str, Any]:
        return {
            EVENT_TYPE_HEADER: self.event_type,
            SOURCE_HEADER: self.source,
            VERSION_HEADER: self.version,
            CORRELATION_ID_HEADER: self.correlation_id,
        }

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, Any] | None,
        *,
        body: bytes = b'',
        message_id: str | None = None,
    ) -> Self | None:
        """
        Rebuild an envelope from received headers.

        Returns None when the EventType header is missing or blank; such messages
        cannot be routed to a handler and are dead-lettered by the consumer.
        """
        headers = headers or {}
        event_type = _lookup_header(headers, EVENT_TYPE_HEADER)
        if event_type is None:
            return None

        return cls(
            event_type=event_type,
            body=body,
            correlation_id=_lookup_header(headers, CORRELATION_ID_HEADER) or '',
            message_id=message_id or '',
            source=_lookup_header(headers, SOURCE_HEADER) or '',
            version=_lookup_header(headers, VERSION_HEADER) or '',
        )

    @property
    def is_current_version(self) -> bool:
        return self.version == settings.EVENT_SCHEMA_VERSION
