"""
Typed Exception Hierarchy for the Order Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (an HTTP layer, a batch job, a test) map kernel failures onto their
own responses.  Matching on message text is fragile, so every error:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (order_id, item_cd, statuses, ...)

    try:
        service.update_order(order_id, patch, principal)
    except CannotChangeOrderStatusError as e:
        respond(409, code=e.code, current=e.current_status)
    except NotFoundError as e:
        respond(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OrderKernelError (base)
    |
    +-- NotFoundError
    |   +-- OrderNotFoundError
    |   +-- OrderLineNotFoundError
    |   +-- BuyerNotFoundError
    |   +-- ItemNotFoundError
    |   +-- MemberNotFoundError
    |
    +-- ConflictError
    |   +-- BuyerCodeAlreadyExistsError
    |   +-- BuyerAlreadyExistsError
    |   +-- EmailAlreadyExistsError
    |   +-- ItemCodeAlreadyExistsError
    |   +-- ItemNameAlreadyExistsError
    |
    +-- InvalidTransitionError
    |   +-- AccessDeniedError
    |   +-- CannotChangeOrderStatusError
    |   +-- InvalidOrderStatusError
    |
    +-- ItemNotFoundInOrderError
    +-- OutOfStockError
    +-- ConditionNotFitError
    +-- InactiveStatusError
    |
    +-- SequenceError
    |   +-- OrderCodeCorruptError
    |
    +-- ConcurrencyError
    |   +-- TransactionRetryExhaustedError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                        | When Raised
--------------|-----------------------------|-------------------------------------
Not found     | ORDER_NOT_FOUND             | Order id doesn't exist
              | ORDER_LINE_NOT_FOUND        | Order line id doesn't exist
              | BUYER_NOT_FOUND             | Buyer code or name unknown
              | ITEM_NOT_FOUND              | Item code unknown
              | MEMBER_NOT_FOUND            | Principal doesn't resolve
--------------|-----------------------------|-------------------------------------
Conflict      | BUYER_CD_ALREADY_EXISTS     | Duplicate buyer code
              | BUYER_ALREADY_EXISTS        | Duplicate buyer name or tel
              | EMAIL_ALREADY_EXISTS        | Duplicate buyer email
              | ITEM_CD_ALREADY_EXISTS      | Duplicate item code
              | ITEM_NAME_ALREADY_EXISTS    | Duplicate item name
--------------|-----------------------------|-------------------------------------
Transition    | ACCESS_DENIED               | APPROVED/REJECTED via generic path,
              |                             | or decide by a non-approver
              | CANNOT_CHANGE_ORDER_STATUS  | Cancellation / terminal-state guards
              | INVALID_ORDER_STATUS        | Status not allowed for the operation
--------------|-----------------------------|-------------------------------------
Order         | ITEM_NOT_FOUND_IN_ORDER     | Line belongs to another order
              | OUT_OF_STOCK                | Stock check rejected the order
              | CONDITION_NOT_FIT           | Missing/invalid search criteria
              | INACTIVE_STATUS             | Entity is soft-deleted
--------------|-----------------------------|-------------------------------------
Sequence      | ORDER_CODE_CORRUPT          | Persisted code malformed / overflow
Concurrency   | TRANSACTION_RETRY_EXHAUSTED | Race retries used up
Immutability  | IMMUTABILITY_VIOLATION      | UPDATE/DELETE on append-only rows

===============================================================================
RETRY POLICY
===============================================================================

Every class here is a synchronous business error and is NOT retried.  Only
database-level races (order-code collision, deadlock, serialization failure)
are retried, and only by ``order_kernel.db.engine.run_with_retry`` at the
transaction boundary.  ``TransactionRetryExhaustedError`` is what callers see
when those retries run out.
"""


class OrderKernelError(Exception):
    """
    Base exception for all order kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ORDER_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(OrderKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    """Order header with given id was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderLineNotFoundError(NotFoundError):
    """Order line with given id was not found."""

    code: str = "ORDER_LINE_NOT_FOUND"

    def __init__(self, line_id: str):
        self.line_id = line_id
        super().__init__(f"Order line not found: {line_id}")


class BuyerNotFoundError(NotFoundError):
    """Buyer with given code or name was not found."""

    code: str = "BUYER_NOT_FOUND"

    def __init__(self, buyer_ref: str):
        self.buyer_ref = buyer_ref
        super().__init__(f"Buyer not found: {buyer_ref}")


class ItemNotFoundError(NotFoundError):
    """Item with given code was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_cd: str):
        self.item_cd = item_cd
        super().__init__(f"Item not found: {item_cd}")


class MemberNotFoundError(NotFoundError):
    """Principal does not resolve to an active member."""

    code: str = "MEMBER_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Member not found: {employee_id}")


# Conflict exceptions (checked before insert, not via constraint violation)


class ConflictError(OrderKernelError):
    """Base exception for duplicate business keys."""

    code: str = "CONFLICT"


class BuyerCodeAlreadyExistsError(ConflictError):
    """Buyer code is already registered."""

    code: str = "BUYER_CD_ALREADY_EXISTS"

    def __init__(self, buyer_cd: str):
        self.buyer_cd = buyer_cd
        super().__init__(f"Buyer code already exists: {buyer_cd}")


class BuyerAlreadyExistsError(ConflictError):
    """A buyer with the same name or telephone number already exists."""

    code: str = "BUYER_ALREADY_EXISTS"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Buyer with {field}={value!r} already exists")


class EmailAlreadyExistsError(ConflictError):
    """Buyer email is already registered."""

    code: str = "EMAIL_ALREADY_EXISTS"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already exists: {email}")


class ItemCodeAlreadyExistsError(ConflictError):
    """Item code is already registered."""

    code: str = "ITEM_CD_ALREADY_EXISTS"

    def __init__(self, item_cd: str):
        self.item_cd = item_cd
        super().__init__(f"Item code already exists: {item_cd}")


class ItemNameAlreadyExistsError(ConflictError):
    """Item name is already registered."""

    code: str = "ITEM_NAME_ALREADY_EXISTS"

    def __init__(self, item_nm: str):
        self.item_nm = item_nm
        super().__init__(f"Item name already exists: {item_nm}")


# State machine exceptions


class InvalidTransitionError(OrderKernelError):
    """Base exception for order state machine guard violations."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, current_status: str, target_status: str | None, reason: str):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Cannot move order from {current_status} to {target_status}: {reason}"
        )


class AccessDeniedError(InvalidTransitionError):
    """
    The actor is not allowed to perform this transition.

    Raised when APPROVED/REJECTED is requested through the generic update
    path, or when a non-approver calls the decide path.
    """

    code: str = "ACCESS_DENIED"


class CannotChangeOrderStatusError(InvalidTransitionError):
    """Cancellation or terminal-state guard rejected the change."""

    code: str = "CANNOT_CHANGE_ORDER_STATUS"


class InvalidOrderStatusError(InvalidTransitionError):
    """The requested status is not valid for this operation."""

    code: str = "INVALID_ORDER_STATUS"


# Order exceptions


class ItemNotFoundInOrderError(OrderKernelError):
    """The order line exists but belongs to a different order."""

    code: str = "ITEM_NOT_FOUND_IN_ORDER"

    def __init__(self, order_id: str, line_id: str):
        self.order_id = order_id
        self.line_id = line_id
        super().__init__(f"Order line {line_id} does not belong to order {order_id}")


class OutOfStockError(OrderKernelError):
    """The stock check rejected the order."""

    code: str = "OUT_OF_STOCK"

    def __init__(self, shortages: dict[str, int]):
        # item_cd -> inventory remaining after the requested quantity
        self.shortages = shortages
        super().__init__(
            "Out of stock: "
            + ", ".join(f"{cd} ({left})" for cd, left in sorted(shortages.items()))
        )


class ConditionNotFitError(OrderKernelError):
    """Search criteria are missing, ambiguous or out of range."""

    code: str = "CONDITION_NOT_FIT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Condition not fit: {reason}")


class InactiveStatusError(OrderKernelError):
    """The entity exists but has been soft-deleted."""

    code: str = "INACTIVE_STATUS"

    def __init__(self, entity_type: str, entity_ref: str):
        self.entity_type = entity_type
        self.entity_ref = entity_ref
        super().__init__(f"{entity_type} {entity_ref} is inactive")


# Sequence exceptions


class SequenceError(OrderKernelError):
    """Base exception for order-code sequence errors."""

    code: str = "SEQUENCE_ERROR"


class OrderCodeCorruptError(SequenceError):
    """
    Persisted order code has an unexpected shape, or the daily range is used up.

    This is a corrupt-state error and is never retried.
    """

    code: str = "ORDER_CODE_CORRUPT"

    def __init__(self, order_code: str, reason: str):
        self.order_code = order_code
        self.reason = reason
        super().__init__(f"Corrupt order code {order_code!r}: {reason}")


# Concurrency exceptions


class ConcurrencyError(OrderKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class TransactionRetryExhaustedError(ConcurrencyError):
    """A unit of work kept colliding with concurrent writers."""

    code: str = "TRANSACTION_RETRY_EXHAUSTED"

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} failed after {attempts} attempt(s)")


# Immutability exceptions


class ImmutabilityError(OrderKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only / never-deleted record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
