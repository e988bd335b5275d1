"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.todo.app.command import (
    complete_todo_use_case,
    create_todo_use_case,
    delete_todo_use_case,
    reopen_todo_use_case,
    update_todo_use_case,
)
from src.service.todo.app.query import get_todo_use_case


WIRE_MODULES: list[ModuleType] = [
    create_todo_use_case,
    complete_todo_use_case,
    reopen_todo_use_case,
    update_todo_use_case,
    delete_todo_use_case,
    get_todo_use_case,
]
