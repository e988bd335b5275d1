from typing import Optional, Self
import uuid

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_repo import ITodoRepo
from src.service.todo.app.service.domain_event_dispatcher import DomainEventDispatcher
from src.service.todo.domain.aggregate.todo_aggregate import Todo
from src.service.todo.domain.enum.priority import Priority


_UNSET = object()


class UpdateTodoUseCase:
    """
    Partial update. Each given field produces one event:
    - title -> TodoUpdatedEvent(field='title')
    - description -> TodoUpdatedEvent(field='description'); None clears it
    - priority -> TodoPriorityChangedEvent
    """

    def __init__(self, *, todo_repo: ITodoRepo, dispatcher: DomainEventDispatcher) -> None:
        self.todo_repo = todo_repo
        self.dispatcher = dispatcher

    @classmethod
    @inject
    def depends(
        cls,
        todo_repo: ITodoRepo = Depends(Provide[Container.todo_repo]),
        dispatcher: DomainEventDispatcher = Depends(Provide[Container.domain_event_dispatcher]),
    ) -> Self:
        return cls(todo_repo=todo_repo, dispatcher=dispatcher)

    @Logger.io
    async def execute(
        self,
        *,
        todo_id: uuid.UUID,
        title: Optional[str] = None,
        description: Optional[str] | object = _UNSET,
        priority: Optional[Priority] = None,
    ) -> Todo:
        todo = await self.todo_repo.get_by_id(todo_id=todo_id)
        if not todo:
            raise NotFoundError('Todo not found')

        if title is not None:
            todo.update_title(title)
        if description is not _UNSET:
            todo.update_description(description)  # type: ignore[arg-type]
        if priority is not None:
            todo.set_priority(priority)

        saved = await self.todo_repo.save(todo=todo)
        await self.dispatcher.dispatch(todo=todo)
        return saved
