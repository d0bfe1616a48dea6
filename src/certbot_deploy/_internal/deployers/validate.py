"""Check that the renewed certificate is usable before deploying it."""
import datetime
import logging
from typing import Optional

import pyrfc3339
from cryptography.exceptions import UnsupportedAlgorithm

from certbot_deploy import crypto_util
from certbot_deploy import errors
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)


class Deployer(common.Deployer):
    """Refuse to go on with an expired or unreadable ``cert.pem``."""

    name = "validate"
    title = "Validate"

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> str:
        return context.cert_path

    def deploy(self, context: RenewalContext, settings: str) -> None:
        logger.info("Verifying certificate validity...")
        try:
            expiry = crypto_util.notAfter(settings)
        except (OSError, ValueError, UnsupportedAlgorithm) as error:
            raise errors.InitializationError(f"Unable to read certificate {settings}: {error}")

        now = datetime.datetime.now(datetime.timezone.utc)
        if expiry <= now:
            raise errors.CertificateExpiredError(
                f"Certificate expired on {pyrfc3339.generate(expiry)}")
        logger.info("Certificate is valid. Expires: %s (in %d days)",
                    pyrfc3339.generate(expiry), (expiry - now).days)
