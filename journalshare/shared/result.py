"""Tagged results returned by transaction bodies.

A transaction body returns Ok(value) to commit its buffered writes or
Err(error) to roll back. The caller unwraps after the transaction has
finished, so domain errors are raised outside the retry loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from journalshare.domain.exceptions import JournalShareException

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: JournalShareException

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
