"""
Credential store — API tokens kept in the OS keyring.

Tokens are stored under ``(service, user)``; the service name is
``tooldl``. A missing entry is an expected outcome (the user is asked
to pass ``--token``), any other backend failure is fatal.
"""

from __future__ import annotations

import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError

from tooldl.core.config.loader import SERVICE_NAME, RunConfig
from tooldl.core.errors import CredentialMissing, CredentialStoreError

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Secret storage keyed by (service, user)."""

    def get(self, service: str, user: str) -> str | None: ...

    def set(self, service: str, user: str, secret: str) -> None: ...


class KeyringStore:
    """CredentialStore backed by the ``keyring`` library."""

    def get(self, service: str, user: str) -> str | None:
        try:
            return keyring.get_password(service, user)
        except KeyringError as exc:
            raise CredentialStoreError(user, str(exc) or type(exc).__name__) from exc

    def set(self, service: str, user: str, secret: str) -> None:
        try:
            keyring.set_password(service, user, secret)
        except KeyringError as exc:
            raise CredentialStoreError(user, str(exc) or type(exc).__name__) from exc


def resolve_credential(
    config: RunConfig,
    store: CredentialStore,
    service: str = SERVICE_NAME,
) -> str:
    """Return the token to use for this run.

    A token given on the command line is saved first and then used.
    Otherwise the stored token for ``config.user`` is returned.

    Raises:
        CredentialMissing: No ``--token`` and nothing stored, or an empty
            ``--token``.
        CredentialStoreError: The store itself failed.
    """
    if config.token is not None:
        if not config.token:
            raise CredentialMissing(config.user)
        store.set(service, config.user, config.token)
        logger.info("Saved token for '%s'", config.user)
        return config.token

    token = store.get(service, config.user)
    if token is None:
        raise CredentialMissing(config.user)

    logger.debug("Using stored token for '%s'", config.user)
    return token
