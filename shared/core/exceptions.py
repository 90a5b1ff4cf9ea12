from typing import Any, Optional

from shared.utils.app_status_code import AppStatusCode


class ServiceError(Exception):
    """Base for errors the API reports through the JsonOutResult envelope."""

    http_status: int = 400
    status_code: str = AppStatusCode.OPERATION_FAILED
    default_message: str = "Operation failed"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)
