"""Common code for deployers."""
import abc
import logging
import os
from typing import Any
from typing import ClassVar
from typing import Optional
from urllib import parse

import requests

import certbot_deploy
from certbot_deploy import errors
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext

logger = logging.getLogger(__name__)

PFX_KEYS = ["pkcs12.pfxPath", "pkcs12.pfxPass"]
"""Keys a consumer of the pkcs12 deployer's output needs."""


class Deployer(metaclass=abc.ABCMeta):
    """One deploy hook target.

    The runner checks `config_key` and `required_keys` before calling
    `parse`, so `parse` may index the document freely. `deploy` performs
    every side effect.

    :ivar float timeout: timeout for network calls, None for the
        transport default

    """

    name: ClassVar[str]
    """Name on the command line."""

    title: ClassVar[str]
    """Name in log lines."""

    config_key: ClassVar[Optional[str]] = None
    """Top-level deploy.json key enabling this deployer, None if it always applies."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def required_keys(self, artifact: Optional[PfxArtifact]) -> list[str]:
        """Key paths that must be present before `parse` is called.

        :param artifact: bundle exported earlier in this invocation, if any

        """
        return []

    @abc.abstractmethod
    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> Any:
        """Resolve effective settings from a validated document."""

    @abc.abstractmethod
    def deploy(self, context: RenewalContext, settings: Any) -> Optional[PfxArtifact]:
        """Push the renewed certificate.

        :returns: a new PKCS#12 bundle for later deployers, if one was made

        """


def resolve_pfx(config: DeployConfig, context: RenewalContext,
                artifact: Optional[PfxArtifact]) -> PfxArtifact:
    """Bundle exported earlier in this invocation, else the one in deploy.json."""
    if artifact is not None:
        return artifact
    filename = config.get("pkcs12.pfxFile") or f"{context.first_domain}.pfx"
    return PfxArtifact(path=os.path.join(config.get("pkcs12.pfxPath"), filename),
                       filename=filename,
                       password=config.get("pkcs12.pfxPass"))


def pfx_keys(artifact: Optional[PfxArtifact]) -> list[str]:
    return [] if artifact is not None else list(PFX_KEYS)


def get_flag(config: DeployConfig, key_path: str, default: bool) -> bool:
    """Boolean option at key_path.

    :raises .errors.InitializationError: if the value is not a JSON boolean

    """
    value = config.get(key_path, default)
    if not isinstance(value, bool):
        raise errors.InitializationError(f"{key_path} must be true or false, not {value!r}")
    return value


def missing_token(token: Any) -> bool:
    """Does an auth response carry no usable token?"""
    return token is None or token == "" or token == "null"


class ApiClient:
    """Thin wrapper around a `requests.Session` for one HTTPS service.

    Transport errors and unreadable bodies become `.errors.UpstreamFailure`.

    """

    def __init__(self, host: str, verify: bool = True,
                 timeout: Optional[float] = None) -> None:
        self.host = host
        self.verify = verify
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["User-Agent"] = f"certbot-deploy/{certbot_deploy.__version__}"

    def url(self, path: str) -> str:
        return parse.urljoin(f"https://{self.host}/", path.lstrip("/"))

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self.url(path)
        logger.debug("API request %s %s", method, url)
        try:
            return self.session.request(method, url, verify=self.verify,
                                        timeout=self.timeout, **kwargs)
        except requests.RequestException as error:
            raise errors.UpstreamFailure(f"Request to {url} failed: {error}")

    @staticmethod
    def json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise errors.UpstreamFailure(
                f"API response with non JSON ({response.status_code}): {response.text[:200]}")

    def close(self) -> None:
        self.session.close()

