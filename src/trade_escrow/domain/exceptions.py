"""Domain exceptions for the trade escrow.

Every check runs before any mutation and raises one of these. The registry
rolls the enclosing operation back whenever one escapes, so a caller that
sees an exception knows nothing was written and no value moved.
"""


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Access Errors ---


class UnauthorizedError(EscrowError):
    """Raised when the caller does not hold the role an operation requires."""

    def __init__(self, caller: str, required_role: str) -> None:
        super().__init__(
            message=f"Caller {caller!r} is not the {required_role}",
            code="UNAUTHORIZED",
        )
        self.caller = caller
        self.required_role = required_role


class PausedError(EscrowError):
    """Raised when a mutating operation is attempted while the escrow is paused."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Escrow is paused: {operation} rejected",
            code="PAUSED",
        )
        self.operation = operation


class InvalidAddressError(EscrowError):
    """Raised when an identity argument is empty."""

    def __init__(self, field: str) -> None:
        super().__init__(
            message=f"Invalid address for {field}",
            code="INVALID_ADDRESS",
        )
        self.field = field


# --- Trade Errors ---


class InvalidTradeIdError(EscrowError):
    """Raised when a trade ID does not exist."""

    def __init__(self, trade_id: int) -> None:
        super().__init__(
            message=f"Trade not found: {trade_id}",
            code="INVALID_TRADE_ID",
        )
        self.trade_id = trade_id


class InvalidStateError(EscrowError):
    """Raised when an operation is not valid for the trade's lifecycle state.

    Example: refund_buyer on a trade that is already AwaitingDelivery.
    """

    def __init__(self, trade_id: int, current_state: str, operation: str) -> None:
        super().__init__(
            message=f"Trade {trade_id} in state {current_state} does not allow {operation}",
            code="INVALID_STATE",
        )
        self.trade_id = trade_id
        self.current_state = current_state
        self.operation = operation


class InvalidAmountError(EscrowError):
    """Raised for a zero deposit, a wrong collateral value or an out-of-range fee."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_AMOUNT")


# --- Transfer Errors ---


class ReentrancyDetectedError(EscrowError):
    """Raised when a guarded operation starts while another is still running."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Reentrant call rejected: {operation}",
            code="REENTRANCY_DETECTED",
        )
        self.operation = operation


class TransferRejectedError(EscrowError):
    """Raised when a recipient refuses an outbound transfer."""

    def __init__(self, recipient: str, amount: int) -> None:
        super().__init__(
            message=f"Transfer of {amount} to {recipient!r} was rejected",
            code="TRANSFER_REJECTED",
        )
        self.recipient = recipient
        self.amount = amount
