from datetime import datetime
from typing import Protocol, runtime_checkable
import uuid


@runtime_checkable
class MqDomainEvent(Protocol):
    """Anything published to the broker: immutable, timestamped, tied to one aggregate"""

    @property
    def occurred_at(self) -> datetime: ...

    @property
    def aggregate_id(self) -> uuid.UUID: ...
