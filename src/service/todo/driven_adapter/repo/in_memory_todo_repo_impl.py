"""
In-memory Todo repository

Process-local store standing in for the database. Holds copies so callers cannot mutate
stored state without an explicit save().
"""

from typing import Dict, Optional
import uuid

import attrs

from src.service.todo.app.interface.i_todo_repo import ITodoRepo
from src.service.todo.domain.aggregate.todo_aggregate import Todo


class InMemoryTodoRepoImpl(ITodoRepo):
    def __init__(self) -> None:
        self._todos: Dict[uuid.UUID, Todo] = {}

    async def get_by_id(self, *, todo_id: uuid.UUID) -> Optional[Todo]:
        stored = self._todos.get(todo_id)
        return attrs.evolve(stored) if stored else None

    async def save(self, *, todo: Todo) -> Todo:
        # evolve() starts with an empty event buffer; the caller's instance keeps its events
        self._todos[todo.id] = attrs.evolve(todo)
        return todo

    async def delete(self, *, todo_id: uuid.UUID) -> bool:
        return self._todos.pop(todo_id, None) is not None
