"""Certbot deploy hook errors."""
from typing import Iterable


class Error(Exception):
    """Generic deploy hook error."""
    exit_code = 1


class InitializationError(Error):
    """Renewal context or deploy.json unusable."""


class MissingConfigurationError(Error):
    """Required keys are absent from deploy.json.

    :ivar list missing_keys: Every missing key path, in declaration order.

    """
    exit_code = 2

    def __init__(self, missing_keys: Iterable[str]) -> None:
        self.missing_keys = list(missing_keys)
        super().__init__(
            "The following keys are missing from deploy.json: "
            + " ".join(self.missing_keys))


class UpstreamFailure(Error):
    """A downstream API call, authentication or transfer failed."""
    exit_code = 3


class ConversionError(Error):
    """PEM to PKCS#12 conversion failed."""


class DeployError(Error):
    """Placing files on the local filesystem failed."""


class CertificateExpiredError(Error):
    """The renewed certificate is already expired."""


class SubprocessError(Error):
    """Subprocess handling error."""


class Skip(Exception):
    """Deployer does not apply to this lineage.

    Not an `Error`: the hook exits successfully and the reason is logged.

    """
    exit_code = 0
