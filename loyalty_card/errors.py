"""
Domain errors raised by the service layer.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer can render it without losing the kind.
"""


class LoyaltyError(Exception):
    code = "LOYALTY_ERROR"
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.code.replace("_", " ").capitalize()

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


# ------------------------------------------------------------
# lookups
# ------------------------------------------------------------
class NotFound(LoyaltyError):
    code = "NOT_FOUND"
    status_code = 404


class CustomerNotFound(NotFound):
    code = "CUSTOMER_NOT_FOUND"


class StoreOwnerNotFound(NotFound):
    code = "STORE_OWNER_NOT_FOUND"


# ------------------------------------------------------------
# uniqueness
# ------------------------------------------------------------
class DuplicateBarcode(LoyaltyError):
    code = "DUPLICATE_BARCODE"
    status_code = 409


class DuplicateStoreOwnerEmail(LoyaltyError):
    code = "DUPLICATE_STORE_OWNER_EMAIL"
    status_code = 409


class DuplicateAdminUsername(LoyaltyError):
    code = "DUPLICATE_ADMIN_USERNAME"
    status_code = 409


# ------------------------------------------------------------
# discounts
# ------------------------------------------------------------
class DiscountInvalid(LoyaltyError):
    code = "DISCOUNT_INVALID"
    status_code = 400


class DiscountNotFound(DiscountInvalid):
    code = "DISCOUNT_NOT_FOUND"
    status_code = 404


class DiscountAlreadyUsed(DiscountInvalid):
    code = "DISCOUNT_ALREADY_USED"
    status_code = 409


class DiscountExpired(DiscountInvalid):
    code = "DISCOUNT_EXPIRED"


class DiscountWrongCustomer(DiscountInvalid):
    code = "DISCOUNT_WRONG_CUSTOMER"
    status_code = 403


# ------------------------------------------------------------
# auth
# ------------------------------------------------------------
class InvalidCredentials(LoyaltyError):
    code = "INVALID_CREDENTIALS"
    status_code = 401


class NotAuthenticated(LoyaltyError):
    code = "NOT_AUTHENTICATED"
    status_code = 401


class Forbidden(LoyaltyError):
    code = "FORBIDDEN"
    status_code = 403


class RoleConflict(LoyaltyError):
    """A different role is still logged in on this session."""

    code = "ROLE_CONFLICT"
    status_code = 409


# ------------------------------------------------------------
# input / storage
# ------------------------------------------------------------
class ValidationError(LoyaltyError):
    code = "VALIDATION_ERROR"
    status_code = 422


class StorageUnavailable(LoyaltyError):
    code = "STORAGE_UNAVAILABLE"
    status_code = 503
