"""Install the renewed certificate for the Lightspeed lantern block pages."""
import dataclasses
import datetime
import logging
import os
import shutil
from typing import Optional

from certbot_deploy import errors
from certbot_deploy import util
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal import constants
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LightspeedSettings:
    install_dir: str
    service_dir: str


class Deployer(common.Deployer):
    """Copy the chain and key into place and restart lantern."""

    name = "lightspeed"
    title = "Lightspeed"

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> LightspeedSettings:
        return LightspeedSettings(
            install_dir=config.get("lightspeed.installDir", constants.LIGHTSPEED_INSTALL_DIR),
            service_dir=config.get("lightspeed.serviceDir", constants.LIGHTSPEED_SERVICE_DIR),
        )

    def deploy(self, context: RenewalContext, settings: LightspeedSettings) -> None:
        if not os.path.isdir(settings.install_dir):
            raise errors.Skip("Directory Not Found")

        cert_path = os.path.join(settings.install_dir, constants.LIGHTSPEED_CERT_FILENAME)
        key_path = os.path.join(settings.install_dir, constants.LIGHTSPEED_KEY_FILENAME)
        suffix = datetime.date.today().strftime("%Y%m%d")
        try:
            for path in (cert_path, key_path):
                if os.path.exists(path):
                    shutil.copy2(path, f"{path}.{suffix}")
                    logger.info("Backed up %s to %s.%s", path, path, suffix)
            shutil.copy(context.fullchain_path, cert_path)
            shutil.copy(context.key_path, key_path)
        except OSError as error:
            raise errors.DeployError(f"Unable to install certificate files: {error}")
        logger.info("Installed certificate files in %s", settings.install_dir)

        try:
            util.run_script(["svc", "-t", settings.service_dir], log=logger.debug)
        except errors.SubprocessError:
            logger.warning("Failed to restart lantern")
        else:
            logger.info("Restarted lantern")
