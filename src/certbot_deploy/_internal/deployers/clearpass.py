"""Install the renewed certificate into Aruba ClearPass for HTTPS and RADIUS.

ClearPass pulls the PKCS#12 bundle by URL from the web certificate store
described by the ``webCertStore`` section, so the bundle must already be
published there when this deployer runs.

"""
import dataclasses
import logging
from typing import Any
from typing import Optional

from certbot_deploy import errors
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal import constants
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)

UUID_PLACEHOLDER = "$uuid"


@dataclasses.dataclass(frozen=True)
class ClearPassSettings:
    host: str
    auth_endpoint: str
    uuid_endpoint: str
    auth_creds: Any
    cert_uris: tuple[str, ...]
    file_url: str
    passphrase: str
    verify: bool
    failure_policy: str


class Deployer(common.Deployer):
    """Multi-step ClearPass API push."""

    name = "clearpass"
    title = "ArubaCP"
    config_key = "clearPass"

    def required_keys(self, artifact: Optional[PfxArtifact]) -> list[str]:
        return common.pfx_keys(artifact) + [
            "clearPass.Host",
            "clearPass.AuthEndpoint",
            "clearPass.UUIDEndpoint",
            "clearPass.AuthCreds",
            "clearPass.CertURI[]",
            "webCertStore.host",
            "webCertStore.port",
            "webCertStore.uri",
        ]

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> ClearPassSettings:
        pfx = common.resolve_pfx(config, context, artifact)
        policy = config.get("clearPass.failurePolicy", "ignore")
        if policy not in constants.FAILURE_POLICIES:
            raise errors.InitializationError(
                f"clearPass.failurePolicy must be one of {', '.join(constants.FAILURE_POLICIES)}")
        cert_uris = config.get("clearPass.CertURI")
        if not all(isinstance(uri, str) for uri in cert_uris):
            raise errors.InitializationError("clearPass.CertURI must be a list of strings")
        file_url = "https://{0}:{1}{2}{3}".format(
            config.get("webCertStore.host"), config.get("webCertStore.port"),
            config.get("webCertStore.uri"), pfx.filename)
        return ClearPassSettings(
            host=config.get("clearPass.Host"),
            auth_endpoint=config.get("clearPass.AuthEndpoint"),
            uuid_endpoint=config.get("clearPass.UUIDEndpoint"),
            auth_creds=config.get("clearPass.AuthCreds"),
            cert_uris=tuple(cert_uris),
            file_url=file_url,
            passphrase=pfx.password,
            verify=common.get_flag(config, "clearPass.verify", True),
            failure_policy=policy,
        )

    def deploy(self, context: RenewalContext, settings: ClearPassSettings) -> None:
        client = _ClearPassClient(settings.host, settings.verify, self.timeout)
        try:
            client.login(settings.auth_endpoint, settings.auth_creds)
            logger.info("Successfully obtained an access token from Aruba CP")
            server_uuid = client.server_uuid(settings.uuid_endpoint)
            logger.info("Successfully obtained SERVER UUID from Aruba CP")

            uris = [uri.replace(UUID_PLACEHOLDER, server_uuid) for uri in settings.cert_uris]
            failed = []
            for uri in uris:
                try:
                    client.update_certificate(uri, settings.file_url, settings.passphrase)
                except errors.UpstreamFailure as error:
                    logger.warning("Failed to update certificate store %s: %s", uri, error)
                    failed.append(uri)
                else:
                    logger.info("Updated certificate store %s", uri)
        finally:
            client.close()

        _apply_failure_policy(settings.failure_policy, failed, len(uris))


def _apply_failure_policy(policy: str, failed: list[str], attempted: int) -> None:
    if not failed:
        return
    summary = f"{len(failed)} of {attempted} certificate store updates failed"
    if policy == "any" or (policy == "all" and len(failed) == attempted):
        raise errors.UpstreamFailure(f"{summary}: {' '.join(failed)}")
    logger.warning(summary)


class _ClearPassClient(common.ApiClient):
    """
    Encapsulates all communication with the ClearPass REST API.
    """

    def login(self, endpoint: str, creds: Any) -> str:
        """Obtain a bearer token.

        :raises .errors.UpstreamFailure: if no token is issued

        """
        try:
            resp = self.request("POST", endpoint, json=creds)
            token = self.json(resp).get("access_token")
        except (errors.UpstreamFailure, AttributeError) as error:
            logger.debug("Token request failed: %s", error)
            token = None
        if common.missing_token(token):
            raise errors.UpstreamFailure("Failed to obtain an access token from Aruba CP")
        self.session.headers["Authorization"] = f"Bearer {token}"
        return token

    def server_uuid(self, endpoint: str) -> str:
        """Look up the appliance's own server UUID.

        :raises .errors.UpstreamFailure: if the response carries none

        """
        uuids: list[str] = []
        try:
            items = self.json(self.request("GET", endpoint))["_embedded"]["items"]
            uuids = [item["server_uuid"] for item in items
                     if isinstance(item, dict) and isinstance(item.get("server_uuid"), str)
                     and item["server_uuid"]]
        except (errors.UpstreamFailure, KeyError, TypeError) as error:
            logger.debug("Server UUID lookup failed: %s", error)
        if not uuids:
            raise errors.UpstreamFailure("Failed to obtain Server UUID from Aruba CP")
        if len(uuids) > 1:
            logger.debug("Several server UUIDs returned, using %s", uuids[0])
        return uuids[0]

    def update_certificate(self, uri: str, file_url: str, passphrase: str) -> None:
        """Point one certificate store at the published bundle.

        :raises .errors.UpstreamFailure: if the request is not accepted

        """
        resp = self.request("PUT", uri, json={
            "pkcs12_file_url": file_url,
            "pkcs12_passphrase": passphrase,
        })
        if not resp.ok:
            raise errors.UpstreamFailure(f"HTTP Error {resp.status_code}")
