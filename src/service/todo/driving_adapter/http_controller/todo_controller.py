import uuid

from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.todo.app.command.complete_todo_use_case import CompleteTodoUseCase
from src.service.todo.app.command.create_todo_use_case import CreateTodoUseCase
from src.service.todo.app.command.delete_todo_use_case import DeleteTodoUseCase
from src.service.todo.app.command.reopen_todo_use_case import ReopenTodoUseCase
from src.service.todo.app.command.update_todo_use_case import UpdateTodoUseCase
from src.service.todo.app.query.get_todo_use_case import GetTodoUseCase
from src.service.todo.domain.aggregate.todo_aggregate import Todo
from src.service.todo.driving_adapter.http_controller.schema.todo_schema import (
    TodoCreateRequest,
    TodoResponse,
    TodoUpdateRequest,
)


router = APIRouter()


def _to_response(todo: Todo) -> TodoResponse:
    return TodoResponse(
        id=todo.id,
        title=todo.title,
        description=todo.description,
        priority=todo.priority,
        is_completed=todo.is_completed,
        created_at=todo.created_at,
        completed_at=todo.completed_at,
    )


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_todo(
    request: TodoCreateRequest,
    use_case: CreateTodoUseCase = Depends(CreateTodoUseCase.depends),
) -> TodoResponse:
    todo = await use_case.execute(
        title=request.title, description=request.description, priority=request.priority
    )
    return _to_response(todo)


@router.patch('/{todo_id}')
@Logger.io
async def update_todo(
    todo_id: uuid.UUID,
    request: TodoUpdateRequest,
    use_case: UpdateTodoUseCase = Depends(UpdateTodoUseCase.depends),
) -> TodoResponse:
    changes = request.model_dump(include=request.model_fields_set)
    todo = await use_case.execute(todo_id=todo_id, **changes)
    return _to_response(todo)


@router.post('/{todo_id}/complete')
@Logger.io
async def complete_todo(
    todo_id: uuid.UUID,
    use_case: CompleteTodoUseCase = Depends(CompleteTodoUseCase.depends),
) -> TodoResponse:
    return _to_response(await use_case.execute(todo_id=todo_id))


@router.post('/{todo_id}/reopen')
@Logger.io
async def reopen_todo(
    todo_id: uuid.UUID,
    use_case: ReopenTodoUseCase = Depends(ReopenTodoUseCase.depends),
) -> TodoResponse:
    return _to_response(await use_case.execute(todo_id=todo_id))


@router.get('/{todo_id}')
@Logger.io
async def get_todo(
    todo_id: uuid.UUID,
    use_case: GetTodoUseCase = Depends(GetTodoUseCase.depends),
) -> TodoResponse:
    return _to_response(await use_case.execute(todo_id=todo_id))


@router.delete('/{todo_id}', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def delete_todo(
    todo_id: uuid.UUID,
    use_case: DeleteTodoUseCase = Depends(DeleteTodoUseCase.depends),
) -> None:
    await use_case.execute(todo_id=todo_id)
