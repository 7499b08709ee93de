"""Explicit success / failure values for validation.

Validators return a :class:`Result` instead of taking a ``throw_on_invalid``
flag, so callers decide whether to inspect the outcome or propagate it with
:meth:`Ok.unwrap` / :meth:`Err.unwrap`.
"""

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

__all__ = ("Err", "Ok", "Result")

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful validation carrying the validated value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed validation carrying the error that describes it."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise the carried error."""
        raise self.error

    def __bool__(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]
