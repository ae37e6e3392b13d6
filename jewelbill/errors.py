class JewelBillError(Exception):
    code = "ERROR"
    status = 400


class NotFound(JewelBillError):
    code = "NOT_FOUND"
    status = 404


class ValidationError(JewelBillError):
    code = "VALIDATION_ERROR"
    status = 400


class ResetNotConfirmed(ValidationError):
    code = "RESET_NOT_CONFIRMED"
    status = 403


class ConflictError(JewelBillError):
    code = "CONFLICT"
    status = 409


class StorageUnavailable(JewelBillError):
    code = "STORAGE_UNAVAILABLE"
    status = 503
