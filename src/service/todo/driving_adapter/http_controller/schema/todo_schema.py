from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel

from src.service.todo.domain.enum.priority import Priority


class TodoCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {'title': 'Buy milk', 'description': '2 liters', 'priority': 2}
        },
    }

    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM


class TodoUpdateRequest(BaseModel):
    """Omitted fields are left unchanged; an explicit null description clears it"""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None


class TodoResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    priority: Priority
    is_completed: bool
    created_at: datetime
    completed_at: Optional[datetime] = None
