"""Credenciales de Dexcom Share y descriptor del formulario de login."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

from share_client_ui.strings import localized


class KnownShareServers(Enum):
    """Share server regions, valued by their stable wire name."""

    US = "US"
    APAC = "APAC"
    WORLDWIDE = "Worldwide"

    @property
    def url(self) -> str:
        return _SERVER_URLS[self]


_SERVER_URLS = {
    KnownShareServers.US: "https://share2.dexcom.com",
    KnownShareServers.APAC: "https://share.dexcom.jp",
    KnownShareServers.WORLDWIDE: "https://shareous1.dexcom.com",
}


class KeyboardType(Enum):
    """Keyboard hint for a credential input."""

    DEFAULT = "default"
    ASCII_CAPABLE = "ascii"


@dataclass(frozen=True)
class CredentialOption:
    """One fixed choice of a credential field."""

    title: str
    value: str


@dataclass(frozen=True)
class ServiceCredential:
    """Declarative description of one login form input."""

    title: str
    is_secret: bool
    keyboard_type: KeyboardType = KeyboardType.DEFAULT
    options: tuple[CredentialOption, ...] | None = None


def credential_form_fields() -> list[ServiceCredential]:
    """Fields of the Share login form: username, password and server."""
    return [
        ServiceCredential(
            title=localized("username"),
            is_secret=False,
            keyboard_type=KeyboardType.ASCII_CAPABLE,
        ),
        ServiceCredential(
            title=localized("password"),
            is_secret=True,
            keyboard_type=KeyboardType.ASCII_CAPABLE,
        ),
        ServiceCredential(
            title=localized("server"),
            is_secret=False,
            options=(
                CredentialOption(localized("server_us"), KnownShareServers.US.value),
                CredentialOption(
                    localized("server_apac"), KnownShareServers.APAC.value
                ),
                CredentialOption(
                    localized("server_worldwide"), KnownShareServers.WORLDWIDE.value
                ),
            ),
        ),
    ]


@dataclass(frozen=True)
class ShareService:
    """Share account credentials (kept in memory only)."""

    username: str | None = None
    password: str | None = None
    server: KnownShareServers | None = None

    @property
    def is_authorized(self) -> bool:
        return bool(self.username and self.password and self.server)

    @property
    def credential_form_fields(self) -> list[ServiceCredential]:
        return credential_form_fields()

    @property
    def credential_form_field_helper_message(self) -> str | None:
        return None

    @property
    def credential_values(self) -> list[str | None]:
        """Current values, in the order of ``credential_form_fields``."""
        return [
            self.username,
            self.password,
            self.server.value if self.server is not None else None,
        ]

    def with_credentials(self, values: Mapping[str, str | None]) -> ShareService:
        """Return a copy with ``username``/``password``/``server`` replaced.

        Raises:
            ValueError: If ``server`` is not a known wire value.
        """
        server_value = values.get("server")
        server = KnownShareServers(server_value) if server_value else None
        return replace(
            self,
            username=values.get("username") or None,
            password=values.get("password") or None,
            server=server,
        )
