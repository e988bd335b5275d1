from enum import IntEnum
from typing import Any


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        """Human form used in notification messages, e.g. 'High'"""
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any) -> 'Priority':
        """Accept a Priority, its integer value, or its name in any case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f'Invalid priority: {value!r}')
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f'Invalid priority: {value!r}') from None
        raise ValueError(f'Invalid priority: {value!r}')
