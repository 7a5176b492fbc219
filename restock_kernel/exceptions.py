"""
Typed Exception Hierarchy for the Restock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Purchase orders move between several actors (managers, admins, vendors).
Callers on the other side of the transport need to tell "you may not do
this" apart from "someone else got there first" without parsing messages.

Every exception therefore:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        orders.approve(order_id, actor)
    except Exception as e:
        if "modified" in str(e):  # FRAGILE
            refresh()

Example - RIGHT way:
    try:
        orders.approve(order_id, actor)
    except ConcurrentModificationError as e:
        order = orders.get(e.order_id, actor)   # re-fetch, re-validate
        ...

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RestockKernelError (base)
    |
    +-- ValidationError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- PermissionDeniedError
    |   +-- MissingPayloadError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- OrderError
    |   +-- OrderNotFoundError
    |
    +-- CatalogError
        +-- ProductNotFoundError
        +-- VendorNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|------------------------------------
Validation   | VALIDATION_ERROR         | Empty selection, empty batch, no vendor
-------------|--------------------------|------------------------------------
Workflow     | INVALID_TRANSITION       | (status, action) not in the table
             | PERMISSION_DENIED        | Role or vendor ownership mismatch
             | MISSING_PAYLOAD          | deliveryDate/reason/trackingInfo blank
-------------|--------------------------|------------------------------------
Concurrency  | CONCURRENT_MODIFICATION  | Status changed since it was read
-------------|--------------------------|------------------------------------
Order        | ORDER_NOT_FOUND          | Unknown purchase order id
-------------|--------------------------|------------------------------------
Catalog      | PRODUCT_NOT_FOUND        | Unknown product id
             | VENDOR_NOT_FOUND         | Unknown vendor id

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ONLY CONCURRENCY IS RETRYABLE, AND ONLY BY THE CALLER:

    except ConcurrentModificationError:
        order = orders.get(order_id, actor)
        if "approve" in orders.available_actions(order, actor):
            orders.approve(order_id, actor)

2. PERMISSION ERRORS DO NOT LEAK OWNERSHIP:

    A vendor acting on another vendor's order gets the same
    PermissionDeniedError as an actor with the wrong role.  The message
    and attributes name the action and the actor's role only.

3. MALFORMED QUANTITY INPUT IS NOT AN ERROR:

    ReconciliationSession.set_quantity("abc") stores 0.  Nothing here is
    raised for routine interactive editing.
"""


class RestockKernelError(Exception):
    """
    Base exception for all restock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RESTOCK_KERNEL_ERROR"


# Validation


class ValidationError(RestockKernelError):
    """Malformed or empty input to a builder or batch call."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# Workflow-related exceptions


class WorkflowError(RestockKernelError):
    """Base exception for purchase order workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """The requested action is not legal from the order's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, order_id: str, current_status: str, action: str):
        self.order_id = order_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} purchase order {order_id} "
            f"in status {current_status}"
        )


class PermissionDeniedError(WorkflowError):
    """
    The actor's role (or vendor ownership) does not permit the action.

    Deliberately carries no ownership detail: a vendor acting on another
    vendor's order sees exactly what a wrong-role actor sees.
    """

    code: str = "PERMISSION_DENIED"

    def __init__(self, action: str, role: str):
        self.action = action
        self.role = role
        super().__init__(f"Role {role} is not permitted to {action} this purchase order")


class MissingPayloadError(WorkflowError):
    """A field required by the action is absent or blank."""

    code: str = "MISSING_PAYLOAD"

    def __init__(self, action: str, field: str):
        self.action = action
        self.field = field
        super().__init__(f"Action {action} requires a non-empty '{field}'")


# Concurrency-related exceptions


class ConcurrencyError(RestockKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """
    Optimistic concurrency conflict on a purchase order.

    The order's status changed between read and write.  The caller must
    re-fetch, re-validate and resubmit; the kernel never retries.
    """

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, order_id: str, expected_status: str, actual_status: str):
        self.order_id = order_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        super().__init__(
            f"Purchase order {order_id} was modified concurrently: "
            f"expected status {expected_status}, found {actual_status}"
        )


# Order-related exceptions


class OrderError(RestockKernelError):
    """Base exception for order store errors."""

    code: str = "ORDER_ERROR"


class OrderNotFoundError(OrderError):
    """Purchase order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Purchase order not found: {order_id}")


# Catalog-related exceptions


class CatalogError(RestockKernelError):
    """Base exception for catalog lookups."""

    code: str = "CATALOG_ERROR"


class ProductNotFoundError(CatalogError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class VendorNotFoundError(CatalogError):
    """Vendor with given ID was not found."""

    code: str = "VENDOR_NOT_FOUND"

    def __init__(self, vendor_id: int):
        self.vendor_id = vendor_id
        super().__init__(f"Vendor not found: {vendor_id}")
