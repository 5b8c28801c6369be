"""Per-provider API key storage in the OS keyring.

Responsibilities:
- Keep one API key per provider under the `linguaflow` keyring service, so a
  `--provider openai` run never picks up the stored Mistral key.
- Report whether a usable keyring backend exists, not just the package.
- Turn keyring backend failures into `ConfigurationError` with a hint.

Secret values are never logged or echoed.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Protocol

from .config import SUPPORTED_PROVIDERS
from .errors import ConfigurationError


SERVICE_NAME = "linguaflow"

_INSTALL_HINT = "Install the `keyring` extra: `pip install linguaflow[keyring]`."


def account_name(provider: str) -> str:
    """Return the keyring account that holds `provider`'s API key."""

    return f"{provider}_api_key"


class CredentialStore(Protocol):
    """Per-provider API key persistence used by the CLI."""

    def is_available(self) -> bool: ...

    def get_api_key(self, provider: str) -> str | None: ...

    def set_api_key(self, provider: str, api_key: str) -> None: ...

    def clear_api_key(self, provider: str) -> bool: ...

    def stored_providers(self) -> tuple[str, ...]: ...


@dataclass(slots=True)
class KeyringCredentialStore:
    """Credential store backed by the optional `keyring` package."""

    service_name: str = SERVICE_NAME

    def _load_keyring_module(self) -> ModuleType | None:
        """Return the `keyring` module, or `None` when it is not installed."""

        try:
            import keyring
        except ImportError:
            return None
        return keyring

    def is_available(self) -> bool:
        """Return whether `keyring` is installed with a backend that can store keys.

        The fallback backend keyring selects when nothing else is usable has
        priority 0 and fails every operation.
        """

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return False
        return keyring_module.get_keyring().priority > 0

    def get_api_key(self, provider: str) -> str | None:
        """Return the stripped key stored for `provider`, or `None`."""

        account = self._account(provider)
        if not self.is_available():
            return None
        keyring_module = self._require_keyring()
        try:
            value = keyring_module.get_password(self.service_name, account)
        except keyring_module.errors.KeyringError as exc:
            raise self._backend_error("read", provider, exc) from exc
        if value is None or not value.strip():
            return None
        return value.strip()

    def set_api_key(self, provider: str, api_key: str) -> None:
        """Store a stripped key for `provider`."""

        account = self._account(provider)
        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        keyring_module = self._require_keyring()
        try:
            keyring_module.set_password(self.service_name, account, normalized)
        except keyring_module.errors.KeyringError as exc:
            raise self._backend_error("store", provider, exc) from exc

    def clear_api_key(self, provider: str) -> bool:
        """Remove the key stored for `provider` and report whether one existed."""

        account = self._account(provider)
        if self.get_api_key(provider) is None:
            return False
        keyring_module = self._require_keyring()
        try:
            keyring_module.delete_password(self.service_name, account)
        except keyring_module.errors.KeyringError as exc:
            raise self._backend_error("clear", provider, exc) from exc
        return True

    def stored_providers(self) -> tuple[str, ...]:
        """Return the providers that currently have a stored key."""

        return tuple(
            provider for provider in SUPPORTED_PROVIDERS if self.get_api_key(provider) is not None
        )

    @staticmethod
    def _account(provider: str) -> str:
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported provider `{provider}`.",
                hint=f"Use one of: {', '.join(SUPPORTED_PROVIDERS)}.",
            )
        return account_name(provider)

    def _require_keyring(self) -> ModuleType:
        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            raise ConfigurationError(
                "Secure credential storage is unavailable.", hint=_INSTALL_HINT
            )
        if keyring_module.get_keyring().priority <= 0:
            raise ConfigurationError(
                "No usable keyring backend was found.",
                hint="Configure a keyring backend, or pass the key via `LINGUAFLOW_API_KEY`.",
            )
        return keyring_module

    @staticmethod
    def _backend_error(action: str, provider: str, exc: Exception) -> ConfigurationError:
        return ConfigurationError(
            f"Could not {action} the {provider} API key in the keyring: {exc}",
            hint="Check the keyring backend, or pass the key via `LINGUAFLOW_API_KEY`.",
        )


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
