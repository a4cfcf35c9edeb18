"""
Transfer API: global transfer statistics and speed limits.
"""

import threading
from dataclasses import dataclass
from typing import Any, Optional

from .api import API_ROOT, BaseAPI
from .enums import ConnectionStatus, HttpMethod
from .request import BaseRequest, ParameterlessRequest
from .response import PAYLOAD_TEXT, ActionResponse, BaseResponse
from .validation import ValidationResult, non_negative_error


_BYTE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


def format_bytes(value: int) -> str:
    """Human readable size using binary units, e.g. ``1.50 MiB``."""
    size = float(value)
    for unit in _BYTE_UNITS:
        if abs(size) < 1024 or unit == _BYTE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{value} B"


class GetTransferInfoRequest(ParameterlessRequest):
    endpoint = "info"


class GetSpeedLimitsModeRequest(ParameterlessRequest):
    endpoint = "speedLimitsMode"


class ToggleSpeedLimitsModeRequest(ParameterlessRequest):
    endpoint = "toggleSpeedLimitsMode"
    method = HttpMethod.POST


class GetDownloadLimitRequest(ParameterlessRequest):
    endpoint = "downloadLimit"


class GetUploadLimitRequest(ParameterlessRequest):
    endpoint = "uploadLimit"


class SetSpeedLimitRequest(BaseRequest):
    """Base for the set*Limit endpoints; ``limit`` is bytes/second, 0 means unlimited."""

    method = HttpMethod.POST

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit

    def to_dict(self) -> dict[str, str]:
        return {"limit": str(self.limit)}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(self.limit, int) or isinstance(self.limit, bool):
            result.add_error("limit", "limit must be an integer")
        else:
            result.check("limit", non_negative_error("limit", self.limit))
        return result


class SetDownloadLimitRequest(SetSpeedLimitRequest):
    endpoint = "setDownloadLimit"


class SetUploadLimitRequest(SetSpeedLimitRequest):
    endpoint = "setUploadLimit"


@dataclass
class GlobalTransferInfoResponse(BaseResponse):
    """Global statistics from /transfer/info. Speeds are bytes/second."""

    dl_info_speed: int = 0
    dl_info_data: int = 0
    up_info_speed: int = 0
    up_info_data: int = 0
    dl_rate_limit: int = 0
    up_rate_limit: int = 0
    dht_nodes: int = 0
    connection_status: str = ConnectionStatus.DISCONNECTED.value

    def _populate(self, payload: Any) -> None:
        data = payload or {}
        self.dl_info_speed = int(data.get("dl_info_speed", 0))
        self.dl_info_data = int(data.get("dl_info_data", 0))
        self.up_info_speed = int(data.get("up_info_speed", 0))
        self.up_info_data = int(data.get("up_info_data", 0))
        self.dl_rate_limit = int(data.get("dl_rate_limit", 0))
        self.up_rate_limit = int(data.get("up_rate_limit", 0))
        self.dht_nodes = int(data.get("dht_nodes", 0))
        self.connection_status = data.get(
            "connection_status", ConnectionStatus.DISCONNECTED.value
        )

    def is_connected(self) -> bool:
        return self.connection_status == ConnectionStatus.CONNECTED.value

    def is_firewalled(self) -> bool:
        return self.connection_status == ConnectionStatus.FIREWALLED.value

    def transfer_ratio(self) -> float:
        """Session upload/download ratio; 0.0 before anything was downloaded."""
        if self.dl_info_data <= 0:
            return 0.0
        return self.up_info_data / self.dl_info_data

    def formatted_download_speed(self) -> str:
        return f"{format_bytes(self.dl_info_speed)}/s"

    def formatted_upload_speed(self) -> str:
        return f"{format_bytes(self.up_info_speed)}/s"


@dataclass
class SpeedLimitsModeResponse(BaseResponse):
    """Alternative speed limits state; the server answers ``1`` when enabled."""

    enabled: bool = False

    payload_kind = PAYLOAD_TEXT

    def _populate(self, payload: Any) -> None:
        text = (payload or "").strip()
        if text not in ("0", "1"):
            raise ValueError(f"unexpected speed limits mode {text!r}")
        self.enabled = text == "1"


@dataclass
class SpeedLimitResponse(BaseResponse):
    """A global speed limit in bytes/second; 0 means unlimited."""

    limit: int = 0

    payload_kind = PAYLOAD_TEXT

    def _populate(self, payload: Any) -> None:
        self.limit = int((payload or "0").strip())

    def is_unlimited(self) -> bool:
        return self.limit == 0


class TransferAPI(BaseAPI):
    """Façade for ``/api/v2/transfer``."""

    base_path = f"{API_ROOT}/transfer"

    def get_transfer_info(
        self, cancel_event: Optional[threading.Event] = None
    ) -> GlobalTransferInfoResponse:
        return self.execute(GetTransferInfoRequest(), GlobalTransferInfoResponse, cancel_event)

    def get_speed_limits_mode(
        self, cancel_event: Optional[threading.Event] = None
    ) -> SpeedLimitsModeResponse:
        return self.execute(GetSpeedLimitsModeRequest(), SpeedLimitsModeResponse, cancel_event)

    def toggle_speed_limits_mode(
        self, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(ToggleSpeedLimitsModeRequest(), ActionResponse, cancel_event)

    def get_download_limit(
        self, cancel_event: Optional[threading.Event] = None
    ) -> SpeedLimitResponse:
        return self.execute(GetDownloadLimitRequest(), SpeedLimitResponse, cancel_event)

    def set_download_limit(
        self, limit: int, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(SetDownloadLimitRequest(limit), ActionResponse, cancel_event)

    def get_upload_limit(
        self, cancel_event: Optional[threading.Event] = None
    ) -> SpeedLimitResponse:
        return self.execute(GetUploadLimitRequest(), SpeedLimitResponse, cancel_event)

    def set_upload_limit(
        self, limit: int, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(SetUploadLimitRequest(limit), ActionResponse, cancel_event)
