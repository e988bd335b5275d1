from typing import Self
import uuid

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_repo import ITodoRepo


class DeleteTodoUseCase:
    """Deletion is not one of the Todo event kinds, so nothing is published."""

    def __init__(self, *, todo_repo: ITodoRepo) -> None:
        self.todo_repo = todo_repo

    @classmethod
    @inject
    def depends(cls, todo_repo: ITodoRepo = Depends(Provide[Container.todo_repo])) -> Self:
        return cls(todo_repo=todo_repo)

    @Logger.io
    async def execute(self, *, todo_id: uuid.UUID) -> None:
        if not await self.todo_repo.delete(todo_id=todo_id):
            raise NotFoundError('Todo not found')
