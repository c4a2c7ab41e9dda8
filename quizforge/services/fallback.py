"""Ordered fallback chains.

Each strategy is a plain callable `(subject, previous_failure) -> Outcome`.
Strategies run strictly one after another; the first `Ok` wins. The previous
`Failure` is handed to the next strategy so a later tier can reuse what an
earlier one found (e.g. page metadata) without any shared mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, Sequence, Tuple, TypeVar, Union

from loguru import logger

T = TypeVar("T")
S = TypeVar("S")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    reason: str
    context: Dict[str, Any] = field(default_factory=dict)


Outcome = Union[Ok[T], Failure]
Strategy = Callable[[S, Optional[Failure]], "Outcome[T]"]


def first_success(subject: S, strategies: Sequence[Tuple[str, Strategy]], *, label: str) -> "Outcome[T]":
    previous: Optional[Failure] = None
    for name, strategy in strategies:
        logger.info(f"[{label}] trying {name}")
        outcome = strategy(subject, previous)
        if isinstance(outcome, Ok):
            logger.info(f"[{label}] {name} succeeded")
            return outcome
        logger.warning(f"[{label}] {name} failed: {outcome.reason}")
        previous = outcome
    return previous or Failure("no strategies configured")
