from typing import Self
import uuid

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_repo import ITodoRepo
from src.service.todo.domain.aggregate.todo_aggregate import Todo


class GetTodoUseCase:
    def __init__(self, *, todo_repo: ITodoRepo) -> None:
        self.todo_repo = todo_repo

    @classmethod
    @inject
    def depends(cls, todo_repo: ITodoRepo = Depends(Provide[Container.todo_repo])) -> Self:
        return cls(todo_repo=todo_repo)

    @Logger.io
    async def execute(self, *, todo_id: uuid.UUID) -> Todo:
        todo = await self.todo_repo.get_by_id(todo_id=todo_id)
        if not todo:
            raise NotFoundError('Todo not found')
        return todo
