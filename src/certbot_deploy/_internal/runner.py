"""Run deployers against one renewal, enforcing the shared hook contract."""
import dataclasses
import enum
import logging
from typing import Iterable
from typing import Optional

from certbot_deploy import errors
from certbot_deploy.configuration import DeployConfig
from certbot_deploy.configuration import PfxArtifact
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal.deployers import common

logger = logging.getLogger(__name__)


class Status(enum.Enum):
    """How a deployer run ended."""

    SUCCESS = enum.auto()
    SKIPPED = enum.auto()
    FAILED = enum.auto()


@dataclasses.dataclass(frozen=True)
class Outcome:
    status: Status
    exit_code: int = 0
    artifact: Optional[PfxArtifact] = None


def run(context: RenewalContext, deployer: common.Deployer,
        artifact: Optional[PfxArtifact] = None) -> Outcome:
    """Run one deployer.

    Steps, in order: renewal context preconditions, deploy.json loading,
    applicability (top-level key), required key validation, settings
    resolution, then the deployer's action. Nothing has side effects
    before the action.

    :param .RenewalContext context: the renewal being deployed
    :param .Deployer deployer: target to run
    :param .PfxArtifact artifact: bundle exported earlier in this
        invocation, handed to consumers instead of the stored password

    :returns: the outcome, with the process exit code
    :rtype: Outcome

    """
    title = f"Certbot {deployer.title}"
    logger.info("=== %s Deploy Hook Started ===", title)
    try:
        context.check()
        logger.info("Renewed domains: %s", " ".join(context.domains))
        logger.info("Certificate directory: %s", context.lineage)

        config = DeployConfig.load(context.deploy_config_path,
                                   required=deployer.config_key is not None)
        if deployer.config_key is not None and not config.has_target(deployer.config_key):
            logger.info("=== %s Config Not Found, Skipping ===", title)
            return Outcome(Status.SKIPPED)

        config.require(deployer.required_keys(artifact))
        settings = deployer.parse(config, context, artifact)
        new_artifact = deployer.deploy(context, settings)
    except errors.Skip as skip:
        logger.info("=== %s %s, Skipping ===", title, skip)
        return Outcome(Status.SKIPPED)
    except errors.Error as error:
        logger.error("%s", error)
        logger.info("=== %s Deploy Hook Failed ===", title)
        return Outcome(Status.FAILED, error.exit_code)

    logger.info("=== %s Deploy Hook Completed Successfully ===", title)
    return Outcome(Status.SUCCESS, artifact=new_artifact)


def run_all(context: RenewalContext, deployers: Iterable[common.Deployer]) -> int:
    """Run deployers in order, stopping at the first failure.

    A bundle exported by one deployer is handed to every later one.

    :returns: exit code of the first failure, else 0
    :rtype: int

    """
    artifact: Optional[PfxArtifact] = None
    for deployer in deployers:
        outcome = run(context, deployer, artifact)
        if outcome.status is Status.FAILED:
            return outcome.exit_code
        if outcome.artifact is not None:
            artifact = outcome.artifact
    return 0
