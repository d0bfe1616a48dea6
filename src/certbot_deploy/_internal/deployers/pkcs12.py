"""Export the renewed certificate as a password protected PKCS#12 bundle.

The bundle is written in two phases so that deploy.json never holds a
password for a bundle that does not exist: the bundle goes to a temporary
file first, the password is persisted, and only then is the bundle moved
into place.

"""
import dataclasses
import logging
import os
import tempfile
from typing import Optional

from certbot_deploy import crypto_util
from certbot_deploy import errors
from certbot_deploy import util
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal import constants
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Pkcs12Settings:
    pfx_dir: str
    pfx_file: str
    user: str
    group: str
    mode: int
    friendly_name: str
    config: DeployConfig = dataclasses.field(compare=False, repr=False)

    @property
    def pfx_path(self) -> str:
        return os.path.join(self.pfx_dir, self.pfx_file)


class Deployer(common.Deployer):
    """PEM to PKCS#12 conversion with a fresh password on every renewal."""

    name = "pkcs12"
    title = "PKCS12"
    config_key = constants.PKCS12_KEY

    def required_keys(self, artifact: Optional[PfxArtifact]) -> list[str]:
        return ["pkcs12.pfxPath"]

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> Pkcs12Settings:
        return Pkcs12Settings(
            pfx_dir=config.get("pkcs12.pfxPath"),
            pfx_file=config.get("pkcs12.pfxFile") or f"{context.first_domain}.pfx",
            user=config.get("pkcs12.pfxUser", constants.PFX_DEFAULT_USER),
            group=config.get("pkcs12.pfxGroup", constants.PFX_DEFAULT_GROUP),
            mode=util.parse_mode(config.get("pkcs12.pfxMode", constants.PFX_DEFAULT_MODE)),
            friendly_name=context.first_domain,
            config=config,
        )

    def deploy(self, context: RenewalContext, settings: Pkcs12Settings) -> PfxArtifact:
        if not os.path.isdir(settings.pfx_dir):
            raise errors.DeployError(f"PFX directory {settings.pfx_dir} does not exist")
        if os.path.isdir(settings.pfx_path):
            raise errors.DeployError(f"{settings.pfx_path} is a directory")

        password = util.generate_password()
        bundle = crypto_util.export_pkcs12(context.key_path, context.fullchain_path,
                                           password, settings.friendly_name)
        logger.info("Converted %s to PKCS#12", context.fullchain_path)

        tmp_path = self._write_bundle(settings, bundle)
        try:
            settings.config.save_export_password(password)
        except (OSError, errors.Error) as error:
            util.safely_remove(tmp_path)
            raise errors.DeployError(f"Unable to store export password: {error}")
        try:
            os.replace(tmp_path, settings.pfx_path)
        except OSError as error:
            util.safely_remove(tmp_path)
            self._restore_password(settings)
            raise errors.DeployError(f"Unable to move bundle to {settings.pfx_path}: {error}")
        logger.info("Wrote %s (owner %s:%s, mode %o)", settings.pfx_path,
                    settings.user, settings.group, settings.mode)

        return PfxArtifact(path=settings.pfx_path, filename=settings.pfx_file,
                           password=password)

    @staticmethod
    def _restore_password(settings: Pkcs12Settings) -> None:
        previous = settings.config.get("pkcs12.pfxPass")
        if previous is None:
            return
        try:
            settings.config.save_export_password(previous)
        except (OSError, errors.Error) as error:
            logger.error("Unable to restore the previous export password: %s", error)

    @staticmethod
    def _write_bundle(settings: Pkcs12Settings, bundle: bytes) -> str:
        fd, tmp_path = tempfile.mkstemp(dir=settings.pfx_dir,
                                        prefix=f".{settings.pfx_file}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(bundle)
            util.set_ownership(tmp_path, settings.user, settings.group, settings.mode)
        except (OSError, LookupError) as error:
            util.safely_remove(tmp_path)
            raise errors.DeployError(f"Unable to write {settings.pfx_path}: {error}")
        return tmp_path
