"""Domain error types.

Every error derives from ValueError so callers that only
know about ValueError keep handling them.
"""


class DomainError(ValueError):
    """Base class for domain-level errors."""


class ValidationError(DomainError):
    """Malformed quantities or amounts."""


class NotFoundError(DomainError):
    """Order, handover, driver, customer or product does not exist."""


class InvalidStateTransitionError(DomainError):
    """The record's current status does not allow the requested change."""


class ConflictError(DomainError):
    """Uniqueness violation, e.g. a concurrent handover insert."""


class AuthorizationError(DomainError):
    """The acting user lacks the capability for this operation."""


def order_not_found(order_id: int) -> str:
    return f"Order {order_id} not found"


def customer_not_found(customer_id: int) -> str:
    return f"Customer {customer_id} not found"


def product_not_found(product_id: int) -> str:
    return f"Product {product_id} not found"


def driver_not_found(driver_id: int) -> str:
    return f"Driver {driver_id} not found"


def handover_not_found(handover_id: int) -> str:
    return f"Cash handover {handover_id} not found"


def expense_not_found(expense_id: int) -> str:
    return f"Expense {expense_id} not found"
