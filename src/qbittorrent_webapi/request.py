"""
Base request contract.

Every remote operation has a request class that knows its endpoint, HTTP
method and whether it needs an authenticated session, and that can
validate and serialize its own parameters.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Sequence

from .enums import HttpMethod
from .exceptions import ValidationError
from .transport import MultipartField
from .validation import ValidationResult


class BaseRequest(ABC):
    """
    Base class for Web API requests.

    Subclasses set ``endpoint`` (path below ``/api/v2``), ``method`` and
    ``requires_authentication`` and implement ``to_dict()`` and
    ``validate()``.
    """

    endpoint: ClassVar[str] = ""
    method: ClassVar[HttpMethod] = HttpMethod.GET
    requires_authentication: ClassVar[bool] = True

    def __init__(self) -> None:
        self._extra_headers: dict[str, str] = {}

    @abstractmethod
    def to_dict(self) -> dict[str, str]:
        """Serialize parameters to the string map sent on the wire."""

    @abstractmethod
    def validate(self) -> ValidationResult:
        """Check every parameter rule and record each violation."""

    def headers(self) -> dict[str, str]:
        return dict(self._extra_headers)

    def add_header(self, name: str, value: str) -> None:
        self._extra_headers[name] = value

    def files(self) -> Sequence[MultipartField]:
        """File parts for multipart requests; empty for everything else."""
        return ()

    def path(self, base_path: str) -> str:
        return f"{base_path.rstrip('/')}/{self.endpoint.lstrip('/')}"

    def summary(self) -> dict[str, Any]:
        """Loggable description of the request; never contains secrets."""
        return {
            "endpoint": self.endpoint,
            "method": self.method.value,
            "requires_auth": self.requires_authentication,
            "parameters": sorted(self.to_dict().keys()),
        }

    def request_id(self) -> str:
        """Stable digest identifying this request's class, target and parameters."""
        payload = json.dumps(
            {
                "class": type(self).__name__,
                "endpoint": self.endpoint,
                "method": self.method.value,
                "params": self.to_dict(),
            },
            sort_keys=True,
        )
        return hashlib.md5(payload.encode("utf-8")).hexdigest()

    def ensure_valid(self) -> "BaseRequest":
        """
        Validate and raise on failure.

        Raises:
            ValidationError: Carrying every recorded violation
        """
        result = self.validate()
        if not result.is_valid:
            raise ValidationError.from_validation_result(
                result, message=f"Invalid {type(self).__name__}"
            )
        return self


class ParameterlessRequest(BaseRequest):
    """Request with no parameters (most GET endpoints)."""

    def to_dict(self) -> dict[str, str]:
        return {}

    def validate(self) -> ValidationResult:
        return ValidationResult()


def join_values(values: Sequence[str], separator: str) -> str:
    return separator.join(v.strip() for v in values)


def bool_param(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "true" if value else "false"
