from typing import Dict, Optional

from shared.core.exceptions import ServiceError
from shared.utils.app_status_code import AppStatusCode


class BillingError(ServiceError):
    pass


class IdentityUnresolved(BillingError):
    """No shop could be tied to the reading; an operator has to pick one."""
    http_status = 422
    status_code = AppStatusCode.IDENTITY_UNRESOLVED
    default_message = "No shop matches this meter. Select a shop manually before generating the bill."


class AnalysisFailure(BillingError):
    http_status = 502
    status_code = AppStatusCode.ANALYSIS_FAILED
    default_message = "Meter image analysis failed. Retake the photo or enter the reading manually."


class PersistenceFailure(BillingError):
    http_status = 500
    status_code = AppStatusCode.SAVE_FAILED
    default_message = "Could not save the reading. Nothing was recorded, please try again."


class ConfirmationRequired(BillingError):
    http_status = 409
    status_code = AppStatusCode.CONFIRMATION_REQUIRED
    default_message = "The reading must be confirmed by the operator before a bill is generated."


class ConcurrencyConflict(BillingError):
    http_status = 409
    status_code = AppStatusCode.CONCURRENT_UPDATE
    default_message = "The meter was updated by another submission. Reload and try again."


class NotFound(BillingError):
    http_status = 404
    status_code = AppStatusCode.NOT_FOUND
    default_message = "Record not found"


class ValidationFailure(BillingError):
    http_status = 422
    status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR
    default_message = "Please correct the highlighted fields"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message, data={"errors": errors})
