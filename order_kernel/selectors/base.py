"""
Module: order_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors, plus the
    window and pagination helpers every order read path shares.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/ DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but never
      add, delete, flush or commit.
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - Date windows are inclusive on whole days: ``[start 00:00, end 23:59:59.999999]``
      in UTC.
    - Pages are 1-indexed; ``page < 1`` or ``size < 1`` is ConditionNotFitError.
"""

from abc import ABC
from datetime import date, datetime, time, timezone
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from order_kernel.db.base import Base
from order_kernel.exceptions import ConditionNotFitError

ModelType = TypeVar("ModelType", bound=Base)

DEFAULT_MAX_PAGE_SIZE = 100


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Inclusive datetime bounds covering every instant of ``start..end``."""
    if start > end:
        raise ConditionNotFitError(f"start date {start} is after end date {end}")
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


def checked_page(page: int, size: int, max_page_size: int = DEFAULT_MAX_PAGE_SIZE) -> tuple[int, int]:
    """
    Validate a 1-indexed page request.

    Returns:
        (page, size) with size capped at max_page_size.

    Raises:
        ConditionNotFitError: page or size below 1.
    """
    if page < 1:
        raise ConditionNotFitError(f"page must be 1 or greater, got {page}")
    if size < 1:
        raise ConditionNotFitError(f"size must be 1 or greater, got {size}")
    return page, min(size, max_page_size)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
