"""
StreamScope Notification - Reified Stream Events
================================================

A notification turns a value, an error or a completion into a plain object so
it can be buffered and replayed later without losing its kind.
"""

from dataclasses import dataclass
from typing import Any, Optional

NEXT = "N"
ERROR = "E"
COMPLETED = "C"


@dataclass(frozen=True)
class Notification:
    """
    A value, error or completion event captured as data.

    Example:
        ```python
        n = Notification.next(42)
        n.accept(observer)  # calls observer.on_next(42)
        ```
    """

    kind: str
    value: Any = None
    exception: Optional[BaseException] = None

    @classmethod
    def next(cls, value: Any) -> "Notification":
        return cls(NEXT, value=value)

    @classmethod
    def error(cls, exception: BaseException) -> "Notification":
        return cls(ERROR, exception=exception)

    @classmethod
    def completed(cls) -> "Notification":
        return cls(COMPLETED)

    @property
    def has_value(self) -> bool:
        return self.kind == NEXT

    def accept(self, observer: Any) -> None:
        """Re-emit this notification on an observer."""
        if self.kind == NEXT:
            observer.on_next(self.value)
        elif self.kind == ERROR:
            observer.on_error(self.exception)
        else:
            observer.on_completed()

    def __repr__(self) -> str:
        if self.kind == NEXT:
            return f"Notification.next({self.value!r})"
        if self.kind == ERROR:
            return f"Notification.error({self.exception!r})"
        return "Notification.completed()"
