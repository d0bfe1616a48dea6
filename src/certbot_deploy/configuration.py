"""Renewal context and the per-lineage deploy.json document."""
import copy
import dataclasses
import json
import logging
import os
from typing import Any
from typing import Iterable
from typing import Optional

from certbot_deploy import errors
from certbot_deploy import util
from certbot_deploy._internal import constants

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclasses.dataclass(frozen=True)
class RenewalContext:
    """What certbot tells a deploy hook about the renewal.

    :ivar tuple domains: renewed domain names, in certbot's order
    :ivar str lineage: live directory of the renewed certificate

    """
    domains: tuple[str, ...]
    lineage: str

    @classmethod
    def from_strings(cls, domains: Optional[str], lineage: Optional[str]) -> 'RenewalContext':
        """Build a context from the transport form (``RENEWED_DOMAINS``)."""
        return cls(tuple((domains or "").split()), lineage or "")

    def check(self) -> None:
        """Verify the preconditions every deploy hook relies on.

        :raises .errors.InitializationError: if the lineage or the domain
            list is empty

        """
        if not self.lineage:
            raise errors.InitializationError("RENEWED_LINEAGE environment variable not set")
        if not self.domains:
            raise errors.InitializationError("RENEWED_DOMAINS environment variable not set")

    @property
    def first_domain(self) -> str:
        return self.domains[0]

    @property
    def cert_path(self) -> str:
        return os.path.join(self.lineage, constants.CERT_FILENAME)

    @property
    def fullchain_path(self) -> str:
        return os.path.join(self.lineage, constants.FULLCHAIN_FILENAME)

    @property
    def key_path(self) -> str:
        return os.path.join(self.lineage, constants.KEY_FILENAME)

    @property
    def deploy_config_path(self) -> str:
        return os.path.join(self.lineage, constants.DEPLOY_CONFIG_FILENAME)


@dataclasses.dataclass(frozen=True)
class PfxArtifact:
    """A PKCS#12 bundle written by the pkcs12 deployer."""
    path: str
    filename: str
    password: str


def _present(value: Any) -> bool:
    # same truthiness as `jq -e`: only null and false fail
    return value is not _MISSING and value is not None and value is not False


class DeployConfig:
    """Read-mostly view of ``<lineage>/deploy.json``.

    Top-level keys name deploy targets. Key paths are dot-delimited; a
    trailing ``[]`` asks for a non-empty array without null or false
    members.

    :ivar str path: location of the document on disk

    """

    def __init__(self, path: str, data: dict[str, Any]) -> None:
        self.path = path
        self._data = data

    @classmethod
    def load(cls, path: str, required: bool = True) -> 'DeployConfig':
        """Load the document at path.

        :param str path: path to deploy.json
        :param bool required: whether a missing file is an error

        :raises .errors.InitializationError: if the file is required but
            missing, or is not a JSON object

        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            if required:
                raise errors.InitializationError(
                    f"{constants.DEPLOY_CONFIG_FILENAME} does not exist")
            logger.debug("No %s at %s", constants.DEPLOY_CONFIG_FILENAME, path)
            return cls(path, {})
        except (OSError, ValueError) as error:
            raise errors.InitializationError(
                f"Unable to read {constants.DEPLOY_CONFIG_FILENAME}: {error}")
        if not isinstance(data, dict):
            raise errors.InitializationError(
                f"{constants.DEPLOY_CONFIG_FILENAME} must contain a JSON object")
        return cls(path, data)

    def _lookup(self, path: str) -> Any:
        value: Any = self._data
        for segment in path.split("."):
            if not isinstance(value, dict) or segment not in value:
                return _MISSING
            value = value[segment]
        return value

    def has_target(self, name: str) -> bool:
        """Is the target configured for this lineage?"""
        return _present(self._lookup(name))

    def has_key(self, key_path: str) -> bool:
        if key_path.endswith("[]"):
            value = self._lookup(key_path[:-2])
            return (isinstance(value, list) and len(value) > 0
                    and all(_present(item) for item in value))
        return _present(self._lookup(key_path))

    def missing_keys(self, key_paths: Iterable[str]) -> list[str]:
        """Every key path from key_paths that is absent, in order."""
        return [key_path for key_path in key_paths if not self.has_key(key_path)]

    def require(self, key_paths: Iterable[str]) -> None:
        """Check all key_paths at once.

        :raises .errors.MissingConfigurationError: listing every missing
            key path

        """
        missing = self.missing_keys(key_paths)
        if missing:
            raise errors.MissingConfigurationError(missing)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Value at key_path, or default when absent or null.

        Mutable values are copied so the document cannot be changed
        through them.

        """
        value = self._lookup(key_path)
        if value is _MISSING or value is None:
            return default
        return copy.deepcopy(value)

    def save_export_password(self, password: str) -> None:
        """Persist ``pkcs12.pfxPass`` for hooks run in later invocations.

        The file is re-read so that only the password changes, then
        replaced atomically.

        :raises .errors.InitializationError: if the file cannot be read
        :raises OSError: if the file cannot be written

        """
        current = self.load(self.path)._data
        section = current.get(constants.PKCS12_KEY)
        if not isinstance(section, dict):
            section = current[constants.PKCS12_KEY] = {}
        section[constants.PFX_PASS_KEY] = password
        payload = json.dumps(current, indent=2) + "\n"
        util.write_atomically(self.path, payload.encode("utf-8"))
        logger.debug("Stored export password in %s", self.path)
