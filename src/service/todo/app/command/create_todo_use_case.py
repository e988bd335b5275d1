from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_repo import ITodoRepo
from src.service.todo.app.service.domain_event_dispatcher import DomainEventDispatcher
from src.service.todo.domain.aggregate.todo_aggregate import Todo
from src.service.todo.domain.enum.priority import Priority


class CreateTodoUseCase:
    """
    Flow:
    1. Todo.create() appends TodoCreatedEvent
    2. Save the aggregate
    3. Dispatch pending events (publish failures do not fail the request)
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
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> Todo:
        todo = Todo.create(title=title, description=description, priority=priority)
        saved = await self.todo_repo.save(todo=todo)
        await self.dispatcher.dispatch(todo=todo)
        return saved
