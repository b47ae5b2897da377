"""
BaseService -- abstract base for kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for the
    write-side services.  Concrete services receive a SQLAlchemy
    ``Session`` and persist through ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back.  OrderService is the one
      exception: it owns the boundary for each lifecycle operation through
      ``order_kernel.db.engine.run_with_retry``.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from order_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Read-only query helpers belong in ``order_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
