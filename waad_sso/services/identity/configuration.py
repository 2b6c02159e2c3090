"""Loading of the SSO configuration file and service certificates."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from waad_sso.schemas.user import CamelModel
from waad_sso.services.identity.errors import ConstructionError, ConstructionFailure

logger = logging.getLogger(__name__)


class SSOConfiguration(CamelModel):
    """Everything the SAML strategy and the directory lookup need.

    ``private_cert`` and ``public_cert`` hold PEM text, not paths.
    ``client_secret`` is absent for ADFS federations without a directory
    integration; the directory lookup is skipped in that case.
    """

    app_url: str
    identity_metadata: str
    login_callback: str
    issuer: str
    logout_callback: Optional[str] = None
    private_cert: str = ""
    public_cert: str = ""
    tenant: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def directory_enabled(self) -> bool:
        return bool(self.client_secret)


def _read_cert(base_dir: Path, cert_path: Optional[str], reason: ConstructionFailure, label: str) -> str:
    if not cert_path:
        raise ConstructionError(reason, f"{label} cert is invalid: no path configured")

    path = Path(cert_path)
    if not path.is_absolute():
        path = base_dir / path

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConstructionError(reason, f"{label} cert is invalid: {exc}") from exc


def load_configuration(configuration_file: Union[str, Path]) -> SSOConfiguration:
    """Read the JSON configuration file and the certificates it points at.

    Relative certificate paths are resolved against the configuration file's
    directory.

    Raises:
        ConstructionError: if the file, its JSON, or either certificate
            cannot be read.
    """
    path = Path(configuration_file)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConstructionError(
            ConstructionFailure.INVALID_CONFIGURATION,
            f"Cannot read SSO configuration {path}: {exc}",
        ) from exc

    if not isinstance(raw, dict):
        raise ConstructionError(
            ConstructionFailure.INVALID_CONFIGURATION,
            f"SSO configuration {path} must be a JSON object",
        )

    base_dir = path.parent
    private_cert = _read_cert(
        base_dir, raw.get("privateCert"), ConstructionFailure.UNREADABLE_PRIVATE_CERT, "Private"
    )
    public_cert = _read_cert(
        base_dir, raw.get("publicCert"), ConstructionFailure.UNREADABLE_PUBLIC_CERT, "Public"
    )

    try:
        configuration = SSOConfiguration.model_validate(
            {**raw, "privateCert": private_cert, "publicCert": public_cert}
        )
    except ValidationError as exc:
        raise ConstructionError(
            ConstructionFailure.INVALID_CONFIGURATION,
            f"Invalid SSO configuration {path}: {exc}",
        ) from exc

    logger.info(
        "Loaded SSO configuration from %s (issuer=%s, directory=%s)",
        path,
        configuration.issuer,
        "enabled" if configuration.directory_enabled else "disabled",
    )
    return configuration
