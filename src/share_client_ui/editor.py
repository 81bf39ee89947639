"""Editor de autenticacion: formulario generico sobre ``ShareService``."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from share_client_ui.share_service import ServiceCredential, ShareService

logger = logging.getLogger(__name__)

AuthenticationObserver = Callable[[ShareService], None]

_FIELD_KEYS = ("username", "password", "server")


class AuthenticationEditor:
    """Credential-entry flow seeded with the current service object."""

    def __init__(self, authentication: ShareService) -> None:
        self.authentication = authentication
        self.authentication_observer: AuthenticationObserver | None = None

    @property
    def fields(self) -> list[ServiceCredential]:
        return self.authentication.credential_form_fields

    @property
    def helper_message(self) -> str | None:
        return self.authentication.credential_form_field_helper_message

    @property
    def values(self) -> dict[str, str | None]:
        return dict(zip(_FIELD_KEYS, self.authentication.credential_values))

    def display_value(self, field: ServiceCredential, value: str | None) -> str:
        """Text shown for ``value`` (secrets masked, options by title)."""
        if not value:
            return ""
        if field.is_secret:
            return "•" * len(value)
        for option in field.options or ():
            if option.value == value:
                return option.title
        return value

    def update(self, values: Mapping[str, str | None]) -> ShareService:
        """Validate form values and hand the new service to the observer.

        Raises:
            ValueError: If a field is empty or the server is unknown.
        """
        missing = [key for key in _FIELD_KEYS if not (values.get(key) or "").strip()]
        if missing:
            raise ValueError(f"Missing credential fields: {', '.join(missing)}")
        cleaned = {key: (values.get(key) or "").strip() for key in _FIELD_KEYS}
        # Passwords keep surrounding spaces.
        cleaned["password"] = values.get("password") or ""
        service = self.authentication.with_credentials(cleaned)
        self._finish(service)
        return service

    def remove(self) -> ShareService:
        """Clear stored credentials and notify the observer."""
        service = ShareService()
        self._finish(service)
        return service

    def _finish(self, service: ShareService) -> None:
        self.authentication = service
        logger.info("Share credentials updated (authorized=%s)", service.is_authorized)
        if self.authentication_observer is not None:
            self.authentication_observer(service)
