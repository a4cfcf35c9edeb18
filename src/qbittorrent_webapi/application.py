"""
Application API: server version, build information and preferences.
"""

import json
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from .api import API_ROOT, BaseAPI
from .enums import HttpMethod
from .request import BaseRequest, ParameterlessRequest
from .response import PAYLOAD_TEXT, ActionResponse, BaseResponse, TextValueResponse
from .validation import ValidationResult


_VERSION_NUMBERS = re.compile(r"\d+")


class GetVersionRequest(ParameterlessRequest):
    endpoint = "version"


class GetWebApiVersionRequest(ParameterlessRequest):
    endpoint = "webapiVersion"


class GetBuildInfoRequest(ParameterlessRequest):
    endpoint = "buildInfo"


class GetPreferencesRequest(ParameterlessRequest):
    endpoint = "preferences"


class GetDefaultSavePathRequest(ParameterlessRequest):
    endpoint = "defaultSavePath"


class SetPreferencesRequest(BaseRequest):
    """POST /app/setPreferences; the changes travel JSON-encoded in form field ``json``."""

    endpoint = "setPreferences"
    method = HttpMethod.POST

    def __init__(self, preferences: dict[str, Any]) -> None:
        super().__init__()
        self.preferences = dict(preferences or {})

    def to_dict(self) -> dict[str, str]:
        return {"json": json.dumps(self.preferences, separators=(",", ":"))}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if not self.preferences:
            result.add_error("preferences", "at least one preference must be given")
        for key in self.preferences:
            if not isinstance(key, str) or not key.strip():
                result.add_error("preferences", "preference names must be non-empty strings")
        return result

    def summary(self) -> dict[str, Any]:
        summary = super().summary()
        # Values may include credentials such as web_ui_password
        summary["preference_keys"] = sorted(self.preferences)
        return summary


@dataclass
class VersionResponse(BaseResponse):
    """Version string from /app/version or /app/webapiVersion, e.g. ``v5.0.1``."""

    version: str = ""

    payload_kind = PAYLOAD_TEXT

    def _populate(self, payload: Any) -> None:
        text = (payload or "").strip()
        if text.startswith("["):
            # Some proxies wrap the plain-text body in a JSON array
            decoded = json.loads(text)
            text = str(decoded[0]) if decoded else ""
        self.version = text.strip().strip('"')

    def get_version(self) -> str:
        return self.version

    def version_parts(self) -> tuple[int, int, int]:
        numbers = [int(n) for n in _VERSION_NUMBERS.findall(self.version.lstrip("vV"))[:3]]
        numbers += [0] * (3 - len(numbers))
        return numbers[0], numbers[1], numbers[2]

    @property
    def major(self) -> int:
        return self.version_parts()[0]

    @property
    def minor(self) -> int:
        return self.version_parts()[1]

    @property
    def patch(self) -> int:
        return self.version_parts()[2]

    def is_version_at_least(self, version: str) -> bool:
        other = VersionResponse(version=version).version_parts()
        return self.version_parts() >= other


@dataclass
class BuildInfoResponse(BaseResponse):
    """Library versions from /app/buildInfo."""

    qt: str = ""
    libtorrent: str = ""
    boost: str = ""
    openssl: str = ""
    zlib: str = ""
    bitness: int = 0

    def _populate(self, payload: Any) -> None:
        data = payload or {}
        self.qt = str(data.get("qt", ""))
        self.libtorrent = str(data.get("libtorrent", ""))
        self.boost = str(data.get("boost", ""))
        self.openssl = str(data.get("openssl", ""))
        self.zlib = str(data.get("zlib", ""))
        self.bitness = int(data.get("bitness", 0) or 0)

    def get_bitness(self) -> int:
        return self.bitness

    def is_64bit(self) -> bool:
        return self.bitness == 64

    def libtorrent_major(self) -> int:
        head = self.libtorrent.split(".", 1)[0]
        return int(head) if head.isdigit() else 0


@dataclass
class PreferencesResponse(BaseResponse):
    preferences: dict[str, Any] = field(default_factory=dict)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise TypeError("preferences payload is not a JSON object")
        self.preferences = payload

    def get(self, name: str, default: Any = None) -> Any:
        return self.preferences.get(name, default)


class ApplicationAPI(BaseAPI):
    """Façade for ``/api/v2/app``."""

    base_path = f"{API_ROOT}/app"

    def get_version(self, cancel_event: Optional[threading.Event] = None) -> VersionResponse:
        return self.execute(GetVersionRequest(), VersionResponse, cancel_event)

    def get_webapi_version(
        self, cancel_event: Optional[threading.Event] = None
    ) -> VersionResponse:
        return self.execute(GetWebApiVersionRequest(), VersionResponse, cancel_event)

    def get_build_info(
        self, cancel_event: Optional[threading.Event] = None
    ) -> BuildInfoResponse:
        return self.execute(GetBuildInfoRequest(), BuildInfoResponse, cancel_event)

    def get_preferences(
        self, cancel_event: Optional[threading.Event] = None
    ) -> PreferencesResponse:
        return self.execute(GetPreferencesRequest(), PreferencesResponse, cancel_event)

    def set_preferences(
        self,
        preferences: dict[str, Any],
        cancel_event: Optional[threading.Event] = None,
    ) -> ActionResponse:
        """
        Change one or more preferences.

        Args:
            preferences: Preference names mapped to new values

        Raises:
            ValidationError: If no preferences are given
        """
        return self.execute(SetPreferencesRequest(preferences), ActionResponse, cancel_event)

    def get_default_save_path(
        self, cancel_event: Optional[threading.Event] = None
    ) -> TextValueResponse:
        return self.execute(GetDefaultSavePathRequest(), TextValueResponse, cancel_event)
