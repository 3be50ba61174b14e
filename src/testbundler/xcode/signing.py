"""Code signing credential providers.

The build treats the prepared credentials as opaque: they are only
forwarded to xcodebuild as authentication arguments.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from testbundler.core.errors import ConfigurationError
from testbundler.core.log import logger as default_logger
from testbundler.xcode.command import AuthenticationParams


class SigningProvider(Protocol):
    def prepare(self) -> AuthenticationParams | None:
        ...

    def cleanup(self) -> None:
        ...


class DisabledSigning:
    """No automatic code signing; xcodebuild uses the project's setup."""

    def __init__(self, logger=default_logger):
        self.logger = logger

    def prepare(self) -> AuthenticationParams | None:
        self.logger.info(
            "Automatic code signing is disabled, "
            "skipped downloading code sign assets"
        )
        return None

    def cleanup(self) -> None:
        pass


class ApiKeySigning:
    """App Store Connect API key passed to xcodebuild.

    A key given as content is written to a temporary .p8 file that
    cleanup() removes again; a key given as a path is left alone.
    """

    def __init__(
        self,
        key_id: str,
        issuer_id: str,
        private_key: str | None = None,
        key_path: Path | None = None,
        logger=default_logger,
    ):
        if not key_id or not issuer_id:
            raise ConfigurationError(
                "api-key signing requires key_id and issuer_id"
            )
        if not private_key and not key_path:
            raise ConfigurationError(
                "api-key signing requires private_key or key_path"
            )
        self.key_id = key_id
        self.issuer_id = issuer_id
        self.private_key = private_key
        self.key_path = key_path
        self.logger = logger
        self._written: Path | None = None

    def prepare(self) -> AuthenticationParams | None:
        self.logger.info("Preparing code signing assets (API key)")
        key_path = self.key_path
        if key_path is None:
            fd, name = tempfile.mkstemp(
                prefix=f"AuthKey_{self.key_id}_", suffix=".p8"
            )
            with os.fdopen(fd, "w") as f:
                f.write(self.private_key)
            key_path = self._written = Path(name)

        return AuthenticationParams(
            key_id=self.key_id,
            issuer_id=self.issuer_id,
            key_path=key_path,
        )

    def cleanup(self) -> None:
        if self._written is None:
            return
        try:
            self._written.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warn(
                "failed to remove private key file: {error}", error=str(e)
            )
        self._written = None


def create_signing_provider(signing, logger=default_logger) -> SigningProvider:
    """Provider for a SigningConfig section."""
    if signing.mode == "off":
        return DisabledSigning(logger=logger)
    if signing.mode == "api-key":
        return ApiKeySigning(
            key_id=signing.key_id or "",
            issuer_id=signing.issuer_id or "",
            private_key=(
                signing.private_key.get_secret_value()
                if signing.private_key else None
            ),
            key_path=signing.key_path,
            logger=logger,
        )
    raise ConfigurationError(f"unknown signing mode: {signing.mode}")
