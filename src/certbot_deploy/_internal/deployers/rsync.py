"""Sync the renewed certificate and key to a remote rsync daemon."""
import dataclasses
import logging
import math
import posixpath
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
class Transfer:
    """One file to place on the remote side."""
    source: str
    destination: str
    user: str
    group: str
    mode: int


@dataclasses.dataclass(frozen=True)
class RsyncSettings:
    host: str
    user: str
    password: str = dataclasses.field(repr=False)
    transfers: tuple[Transfer, ...]


class Deployer(common.Deployer):
    """Copy, chown and chmod each side (public chain, private key) remotely."""

    name = "rsync"
    title = "Rsync"
    config_key = "rsync"

    def required_keys(self, artifact: Optional[PfxArtifact]) -> list[str]:
        return [
            "rsync.host",
            "rsync.user",
            "rsync.pass",
            "rsync.dstPath",
            "rsync.dstPubFile",
            "rsync.dstPubUser",
            "rsync.dstPubGroup",
            "rsync.dstPrivFile",
            "rsync.dstPrivUser",
            "rsync.dstPrivGroup",
        ]

    def parse(self, config: DeployConfig, context: RenewalContext,
              artifact: Optional[PfxArtifact]) -> RsyncSettings:
        dst_path = config.get("rsync.dstPath")
        public = Transfer(
            source=context.fullchain_path,
            destination=posixpath.join(dst_path, config.get("rsync.dstPubFile")),
            user=config.get("rsync.dstPubUser"),
            group=config.get("rsync.dstPubGroup"),
            mode=util.parse_mode(config.get("rsync.dstPubMode",
                                            constants.RSYNC_DEFAULT_PUB_MODE)),
        )
        private = Transfer(
            source=context.key_path,
            destination=posixpath.join(dst_path, config.get("rsync.dstPrivFile")),
            user=config.get("rsync.dstPrivUser"),
            group=config.get("rsync.dstPrivGroup"),
            mode=util.parse_mode(config.get("rsync.dstPrivMode",
                                            constants.RSYNC_DEFAULT_PRIV_MODE)),
        )
        return RsyncSettings(
            host=config.get("rsync.host"),
            user=config.get("rsync.user"),
            password=config.get("rsync.pass"),
            transfers=(public, private),
        )

    def deploy(self, context: RenewalContext, settings: RsyncSettings) -> None:
        for transfer in settings.transfers:
            target = "rsync://{0}@{1}/{2}".format(
                settings.user, settings.host, transfer.destination.lstrip("/"))
            command = rsync_command(transfer, target, self.timeout)
            try:
                # password goes through the environment, never argv
                util.run_script(command, env={"RSYNC_PASSWORD": settings.password})
            except errors.SubprocessError as error:
                raise errors.UpstreamFailure(f"Transfer of {transfer.source} failed: {error}")
            logger.info("Synced %s to %s", transfer.source, target)


def rsync_command(transfer: Transfer, target: str,
                  timeout: Optional[float] = None) -> list[str]:
    command = [
        "rsync",
        f"--chown={transfer.user}:{transfer.group}",
        f"--chmod=F{transfer.mode:o}",
    ]
    if timeout:
        command.append(f"--timeout={max(1, math.ceil(timeout))}")
    return command + [transfer.source, target]
