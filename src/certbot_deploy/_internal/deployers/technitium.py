"""Reload the Technitium DNS web service certificate."""
import dataclasses
import logging
from typing import Optional

from certbot_deploy import errors
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal import constants
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


@dataclasses.dataclass(frozen=True)
class TechnitiumSettings:
    host: str
    user: str
    password: str = dataclasses.field(repr=False)
    pfx_path: str
    pfx_password: str = dataclasses.field(repr=False)
    verify: bool


class Deployer(common.Deployer):
    """Point the DNS server's web service at the new PKCS#12 bundle."""

    name = "technitium"
    title = "Technitium"
    config_key = "technitium"

    def required_keys(self, artifact: Optional[PfxArtifact]) -> list[str]:
        return common.pfx_keys(artifact) + ["technitium.user", "technitium.pass"]

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> TechnitiumSettings:
        pfx = common.resolve_pfx(config, context, artifact)
        return TechnitiumSettings(
            host=config.get("technitium.host", constants.TECHNITIUM_DEFAULT_HOST),
            user=config.get("technitium.user"),
            password=config.get("technitium.pass"),
            pfx_path=pfx.path,
            pfx_password=pfx.password,
            verify=common.get_flag(config, "technitium.verify", False),
        )

    def deploy(self, context: RenewalContext, settings: TechnitiumSettings) -> None:
        client = _TechnitiumClient(settings.host, settings.verify, self.timeout)
        try:
            token = client.login(settings.user, settings.password)
            logger.info("Successfully obtained a session token from Technitium DNS")
            client.set_tls_certificate(token, settings.pfx_path, settings.pfx_password)
            logger.info("Technitium DNS web service now uses %s", settings.pfx_path)
        finally:
            client.close()


class _TechnitiumClient(common.ApiClient):
    """
    Encapsulates all communication with the Technitium DNS HTTP API.
    """

    def login(self, user: str, password: str) -> str:
        """Open a session.

        :raises .errors.UpstreamFailure: if no session token is issued

        """
        try:
            resp = self.request("POST", "api/user/login", headers=FORM_HEADERS,
                                params={"user": user, "pass": password})
            token = self.json(resp).get("token")
        except (errors.UpstreamFailure, AttributeError) as error:
            logger.debug("Login failed: %s", error)
            token = None
        if common.missing_token(token):
            raise errors.UpstreamFailure("Failed to obtain a session token from Technitium DNS")
        return token

    def set_tls_certificate(self, token: str, pfx_path: str, pfx_password: str) -> None:
        """Update the web service TLS settings.

        :raises .errors.UpstreamFailure: if the settings are not accepted

        """
        resp = self.request("POST", "api/settings/set", headers=FORM_HEADERS, params={
            "token": token,
            "webServiceTlsCertificatePath": pfx_path,
            "webServiceTlsCertificatePassword": pfx_password,
        })
        if not resp.ok:
            raise errors.UpstreamFailure(f"HTTP Error during settings update {resp.status_code}")
        result = self.json(resp)
        if not isinstance(result, dict) or result.get("status") != "ok":
            raise errors.UpstreamFailure(
                "Technitium DNS rejected the settings update: {0}".format(
                    result.get("errorMessage", result) if isinstance(result, dict) else result))
