"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity/Auth
  3xxx: Listing
  4xxx: Form validation
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


# --- 1xxx: Identity/Auth ---

class NameTakenError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class UserNotFoundError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "User not found", 404)


class InvalidCredentialError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid password", 401)


class MissingCredentialError(AppError):
    """Matched profile predates credentials (legacy create_profile path)."""

    def __init__(self) -> None:
        super().__init__(1004, "Account authentication error", 401)


class NotAuthenticatedError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(1005, f"You must be logged in to {action}", 401)


class ProfileNotFoundError(AppError):
    def __init__(self, profile_id: str) -> None:
        super().__init__(1006, f"Profile not found: {profile_id}", 404)


# --- 3xxx: Listing ---

class ListingNotFoundError(AppError):
    def __init__(self) -> None:
        super().__init__(3001, "Listing not found", 404)


class NotListingOwnerError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(3002, f"You can only {action} your own listings", 403)


# --- 4xxx: Form validation ---

class ValidationFailedError(AppError):
    def __init__(self, field_errors: dict[str, str], step: int | None = None) -> None:
        self.field_errors = field_errors
        self.step = step
        detail = "; ".join(f"{k}: {v}" for k, v in field_errors.items())
        super().__init__(4001, f"Validation failed: {detail}", 422)


# --- 9xxx: System ---

class SyncInitFailedError(AppError):
    def __init__(self, doc_id: str, detail: str) -> None:
        self.doc_id = doc_id
        super().__init__(9001, f"Sync initialization failed for {doc_id}: {detail}", 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
