from abc import ABC, abstractmethod
from typing import Optional
import uuid

from src.service.todo.domain.aggregate.todo_aggregate import Todo


class ITodoRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, todo_id: uuid.UUID) -> Optional[Todo]:
        pass

    @abstractmethod
    async def save(self, *, todo: Todo) -> Todo:
        """Persist the aggregate state. Pending domain events are left in place."""
        pass

    @abstractmethod
    async def delete(self, *, todo_id: uuid.UUID) -> bool:
        """Return False when no Todo with this id exists."""
        pass
