"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth / input validation
  2xxx: Group & membership
  3xxx: Bet & wager
  4xxx: Drink balances
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth / validation ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired access token", 401)


class ValidationError(AppError):
    """Malformed input: empty title/options, non-positive amount, empty batch."""

    def __init__(self, detail: str) -> None:
        super().__init__(1101, f"Validation failed: {detail}", 422)


# --- NotFound family (2001, 3001, 3002) ---

class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class GroupNotFoundError(NotFoundError):
    def __init__(self, group_id: str) -> None:
        super().__init__(2001, f"Group not found: {group_id}")


class BetNotFoundError(NotFoundError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(3001, f"Bet not found: {bet_id}")


class OptionNotFoundError(NotFoundError):
    def __init__(self, bet_id: str, option_id: str) -> None:
        super().__init__(3002, f"Option {option_id} not found on bet {bet_id}")


# --- 2xxx: Group & membership ---

class NotMemberError(AppError):
    def __init__(self, user_id: str, group_id: str) -> None:
        super().__init__(2002, f"User {user_id} is not a member of group {group_id}", 403)


class NotGroupOwnerError(AppError):
    def __init__(self, group_id: str) -> None:
        super().__init__(2003, f"Only the owner of group {group_id} may do this", 403)


class AlreadyMemberError(AppError):
    def __init__(self, user_id: str, group_id: str) -> None:
        super().__init__(2004, f"User {user_id} is already a member of group {group_id}", 409)


# --- 3xxx: Bet state ---

class InvalidStateError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid state: {detail}", 422)


# --- 4xxx: Balances ---

class InsufficientBalanceError(AppError):
    def __init__(
        self, drink_type: str, measure_type: str, required: int, available: int
    ) -> None:
        self.drink_type = drink_type
        self.measure_type = measure_type
        super().__init__(
            4001,
            f"Insufficient {measure_type} {drink_type}: "
            f"required {required}, available {available}",
            422,
        )


# --- 9xxx: System ---

class ConflictError(AppError):
    def __init__(self, group_id: str) -> None:
        super().__init__(9001, f"Group {group_id} was modified concurrently, retry", 409)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
