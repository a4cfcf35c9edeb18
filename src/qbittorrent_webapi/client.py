"""
Top-level client.

A Client owns one transport and one session and hands out the per-domain
façades, all sharing them. One Client corresponds to one logged-in
account; do not share a Client between threads logging in as different
users.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

from . import __version__
from .application import ApplicationAPI
from .audit_logger import AuditLogger
from .auth import AuthAPI, LoginResponse, LogoutResponse
from .config import ENV_PREFIX, ClientConfig
from .enums import LogLevel
from .exceptions import ApiRuntimeError, ValidationError
from .rss import RSSAPI
from .search import SearchAPI
from .session import Session
from .sync import SyncAPI
from .torrents import TorrentAPI
from .transfer import TransferAPI
from .transport import HttpxTransport, Transport


class Client:
    """Entry point bundling every façade over one transport and session."""

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Validated connection settings
            transport: Optional transport; an HttpxTransport built from
                ``config`` is used when omitted
            logger: Optional audit logger shared with the transport and façades
        """
        self._config = config
        self._logger = logger
        self._session = Session()
        self._transport = transport if transport is not None else self._build_transport(config)
        self._transport.set_base_url(config.base_url)
        self._apis: dict[type, Any] = {}

    def _build_transport(self, config: ClientConfig) -> HttpxTransport:
        return HttpxTransport(
            base_url=config.base_url,
            timeout=config.timeout,
            connect_timeout=config.connect_timeout,
            verify_ssl=config.verify_ssl,
            ssl_cert_path=config.ssl_cert_path,
            proxy=config.proxy,
            proxy_auth=config.proxy_auth,
            user_agent=config.user_agent,
            logger=self._logger,
        )

    # Construction helpers

    @classmethod
    def from_config_dict(
        cls, data: Mapping[str, Any], logger: Optional[AuditLogger] = None
    ) -> "Client":
        return cls(ClientConfig.from_dict(data), logger=logger)

    @classmethod
    def from_json_file(
        cls, path: Union[str, Path], logger: Optional[AuditLogger] = None
    ) -> "Client":
        return cls(ClientConfig.from_json_file(path), logger=logger)

    @classmethod
    def from_environment(
        cls,
        prefix: str = ENV_PREFIX,
        dotenv_path: Optional[Union[str, Path]] = None,
        logger: Optional[AuditLogger] = None,
    ) -> "Client":
        return cls(ClientConfig.from_environment(prefix, dotenv_path=dotenv_path), logger=logger)

    # Properties

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def session(self) -> Session:
        return self._session

    # Façades

    def _api(self, api_cls: type) -> Any:
        api = self._apis.get(api_cls)
        if api is None:
            api = api_cls(
                self._transport,
                session=self._session,
                logger=self._logger,
                clear_session_on_auth_error=self._config.clear_session_on_auth_error,
            )
            self._apis[api_cls] = api
        return api

    def auth_api(self) -> AuthAPI:
        return self._api(AuthAPI)

    def application_api(self) -> ApplicationAPI:
        return self._api(ApplicationAPI)

    def transfer_api(self) -> TransferAPI:
        return self._api(TransferAPI)

    def torrent_api(self) -> TorrentAPI:
        return self._api(TorrentAPI)

    def rss_api(self) -> RSSAPI:
        return self._api(RSSAPI)

    def search_api(self) -> SearchAPI:
        return self._api(SearchAPI)

    def sync_api(self) -> SyncAPI:
        return self._api(SyncAPI)

    # Session

    def login(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> LoginResponse:
        """
        Log in, defaulting to the configured credentials.

        Raises:
            ValidationError: If no credentials are given or configured
            ApiRuntimeError: If the server cannot be reached
        """
        username = username if username is not None else self._config.username
        password = password if password is not None else self._config.password
        if username is None:
            raise ValidationError.missing_parameter("username")
        if password is None:
            raise ValidationError.missing_parameter("password")
        return self.auth_api().login(username, password)

    def logout(self) -> LogoutResponse:
        return self.auth_api().logout()

    def is_logged_in(self) -> bool:
        return self._session.is_active()

    def get_session_id(self) -> Optional[str]:
        return self._session.session_token

    def set_transport(self, transport: Transport) -> None:
        """Swap the transport; façades are rebuilt and the session is cleared."""
        self._transport = transport
        self._transport.set_base_url(self._config.base_url)
        self._session.clear()
        self._apis.clear()

    def test_connection(self) -> bool:
        """
        Check that the server answers /app/version.

        Logs in with the configured credentials first when needed.
        """
        try:
            if not self.is_logged_in():
                if not self._config.has_credentials():
                    return False
                if not self.login().is_success():
                    return False
            return self.application_api().get_version().is_success()
        except ApiRuntimeError as e:
            if self._logger is not None:
                self._logger.log_error("client", "Connection test failed", error=e)
            return False

    def get_server_info(self) -> dict[str, Any]:
        """Application version, Web API version and build information."""
        app = self.application_api()
        version = app.get_version()
        webapi = app.get_webapi_version()
        build = app.get_build_info()
        info = {
            "version": version.version,
            "webapi_version": webapi.version,
            "build_info": {
                "qt": build.qt,
                "libtorrent": build.libtorrent,
                "boost": build.boost,
                "openssl": build.openssl,
                "zlib": build.zlib,
                "bitness": build.bitness,
            },
        }
        if self._logger is not None:
            self._logger.log(LogLevel.INFO, "client", "Fetched server info", info)
        return info

    def client_info(self) -> dict[str, Any]:
        return {
            "library_version": __version__,
            "base_url": self._config.base_url,
            "logged_in": self.is_logged_in(),
            "session": self.auth_api().current_session_info(),
            "transport": type(self._transport).__name__,
        }

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
