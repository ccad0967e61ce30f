"""
Tagged Result type used by the reconciliation workflow.

Success carries a value, Failure carries an exception. Both are frozen
dataclasses so results can be compared in tests.
"""
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar('T')
U = TypeVar('U')


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> 'Success[U]':
        return Success(fn(self.value))

    def flat_map(self, fn: Callable[[T], 'Result']) -> 'Result':
        return fn(self.value)

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: Exception

    @property
    def is_success(self) -> bool:
        return False

    def map(self, fn: Callable) -> 'Failure':
        return self

    def flat_map(self, fn: Callable) -> 'Failure':
        return self

    def value_or(self, default: Any) -> Any:
        return default


Result = Union[Success[T], Failure]
