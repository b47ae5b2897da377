"""
SequenceService -- named counters for the daily order-code sequence.

Each order-code date token owns one counter row (``order_code:24DEC11``)
holding the last sequence number handed out.  Allocation locks that row
with ``SELECT ... FOR UPDATE`` and increments it inside the caller's
transaction, so two concurrent creations on the same day serialize on the
row and never see the same number.  A rolled-back transaction returns its
number.

Counter rows are created lazily.  The creator may pass a ``seed`` callable
that reports the last number already in use, so a counter introduced over
existing orders continues after them instead of restarting at 1.
"""

from typing import Callable

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from order_kernel.db.base import Base
from order_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """Last value handed out for one named sequence."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Allocates gap-free, increasing values per sequence name.

    Only flushes; the value is consumed when the caller commits.
    """

    def __init__(self, session: Session):
        self._session = session

    def _find(self, name: str, *, lock: bool) -> SequenceCounter | None:
        stmt = select(SequenceCounter).where(SequenceCounter.name == name)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def _create(self, name: str, first_value: int) -> SequenceCounter | None:
        """
        Insert a counter already holding ``first_value``.

        Returns None if a concurrent transaction created the row first; the
        savepoint keeps the caller's other work intact in that case.
        """
        savepoint = self._session.begin_nested()
        try:
            counter = SequenceCounter(name=name, current_value=first_value)
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race", extra={"sequence_name": name})
            return None
        savepoint.commit()
        return counter

    def next_value(self, name: str, seed: Callable[[], int] | None = None) -> int:
        """
        Allocate the next value of ``name``.

        Args:
            name: Sequence name.
            seed: Consulted only when the counter does not exist yet; returns
                the last value already in use.  The first allocation is then
                ``seed() + 1`` (1 without a seed).
        """
        counter = self._find(name, lock=True)

        if counter is None:
            first_value = (seed() if seed is not None else 0) + 1
            created = self._create(name, first_value)
            if created is not None:
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": name, "value": first_value, "seeded_from": first_value - 1},
                )
                return first_value
            counter = self._find(name, lock=True)
            if counter is None:
                raise RuntimeError(f"sequence counter {name!r} vanished after a creation race")

        counter.current_value += 1
        self._session.flush()
        logger.debug("sequence_allocated", extra={"sequence_name": name, "value": counter.current_value})
        return counter.current_value

    def current_value(self, name: str) -> int | None:
        """Last value handed out, or None if the counter was never created."""
        counter = self._find(name, lock=False)
        return counter.current_value if counter is not None else None

    def reset(self, name: str, value: int = 0) -> None:
        """Force a counter to ``value``.  For tests and data repair."""
        counter = self._find(name, lock=True)
        if counter is None:
            self._session.add(SequenceCounter(name=name, current_value=value))
        else:
            counter.current_value = value
        self._session.flush()
