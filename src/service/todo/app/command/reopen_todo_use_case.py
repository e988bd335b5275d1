from typing import Self
import uuid

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_repo import ITodoRepo
from src.service.todo.app.service.domain_event_dispatcher import DomainEventDispatcher
from src.service.todo.domain.aggregate.todo_aggregate import Todo


class ReopenTodoUseCase:
    """Reopening a Todo that is not completed appends no event, so nothing is published."""

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
    async def execute(self, *, todo_id: uuid.UUID) -> Todo:
        todo = await self.todo_repo.get_by_id(todo_id=todo_id)
        if not todo:
            raise NotFoundError('Todo not found')

        todo.reopen()
        saved = await self.todo_repo.save(todo=todo)
        await self.dispatcher.dispatch(todo=todo)
        return saved
