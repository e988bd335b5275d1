"""Todo Domain Enums"""

from src.service.todo.domain.enum.priority import Priority

__all__ = ['Priority']
