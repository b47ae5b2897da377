"""
OrderCodeGenerator -- mints human-readable order codes.

Responsibility:
    Produces ``<yyMMMdd><5-digit sequence>`` codes (``24DEC1100001``) for
    new orders.  The daily sequence is a locked counter row in
    SequenceService named after the date token, so a new day restarts at
    00001 without any reset job.

Architecture position:
    Kernel > Services.  Called once per order by OrderService, inside the
    order's transaction.

Invariants enforced:
    - Same-day codes are strictly increasing and gap-free under sequential
      calls; the next value comes from the locked counter, never from
      reading the greatest persisted code and adding one.
    - Continuity: when a day's counter is first created it is seeded from
      the greatest persisted code carrying that date token, so codes
      written before the counter existed are never reissued.
    - uq_order_code on order_headers remains the last line of defence; a
      collision surfaces as IntegrityError and is retried by
      ``run_with_retry`` at the transaction boundary.

Failure modes:
    - OrderCodeCorruptError: the greatest persisted code for the day is
      malformed, or the day has used up all 99999 sequence values.  Fatal,
      never retried.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from order_kernel.domain.clock import Clock, SystemClock
from order_kernel.domain.order_code import date_token, format_order_code, parse_sequence
from order_kernel.logging_config import get_logger
from order_kernel.models.order import OrderHeader
from order_kernel.services.sequence_service import SequenceService

logger = get_logger("services.order_code")

SEQUENCE_PREFIX = "order_code:"


class OrderCodeGenerator:
    """Allocates the next order code for the clock's current date."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequences = sequence_service or SequenceService(session)

    def next_code(self) -> str:
        """
        Allocate the next order code.

        Postconditions:
            - The day's counter row is locked until the caller's
              transaction ends.

        Raises:
            OrderCodeCorruptError: corrupt persisted code or daily overflow.
        """
        token = date_token(self._clock.today())
        sequence = self._sequences.next_value(
            SEQUENCE_PREFIX + token,
            seed=lambda: self.last_persisted_sequence(token),
        )
        order_code = format_order_code(token, sequence)

        logger.info(
            "order_code_allocated",
            extra={"order_code": order_code, "date_token": token, "sequence": sequence},
        )
        return order_code

    def last_persisted_sequence(self, token: str) -> int:
        """
        Sequence of the greatest persisted code with this date token, 0 if none.

        Codes of one token sort lexicographically by sequence, so MAX() over
        the prefix finds the latest.  Only used to seed a new counter.
        """
        greatest = self._session.execute(
            select(func.max(OrderHeader.order_code)).where(
                OrderHeader.order_code.like(f"{token}%")
            )
        ).scalar()

        if greatest is None:
            return 0
        return parse_sequence(greatest, token)
