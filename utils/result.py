"""
Explicit success/failure values returned by core operations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from utils.errors import AppError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok = True


@dataclass(frozen=True)
class Err:
    error: AppError
    ok = False


Result = Union[Ok[T], Err]


def unwrap(result: Result[T]) -> T:
    """Return the carried value or raise the carried AppError.

    Only the HTTP boundary should call this.
    """
    if isinstance(result, Err):
        raise result.error
    return result.value
