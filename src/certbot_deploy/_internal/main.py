"""Deploy hook main entry point."""
import logging
import sys
from typing import Optional

import certbot_deploy
from certbot_deploy.configuration import RenewalContext
from certbot_deploy._internal import cli
from certbot_deploy._internal import log
from certbot_deploy._internal import runner
from certbot_deploy._internal.deployers import DEPLOYERS

logger = logging.getLogger(__name__)


def main(cli_args: Optional[list[str]] = None) -> int:
    """Run the requested deployers.

    :param cli_args: command line, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: process exit code
    :rtype: int

    """
    if cli_args is None:
        cli_args = sys.argv[1:]

    # note: arg parser internally handles --help (and exits afterwards)
    args = cli.prepare_and_parse_args(cli_args)
    handlers = log.setup(args.log_file, log.level_from_flags(args.verbose_count, args.quiet))
    try:
        logger.debug("certbot-deploy version: %s", certbot_deploy.__version__)
        logger.debug("Deployers: %s", ", ".join(args.deployers))

        context = RenewalContext.from_strings(args.domains, args.lineage)
        deployers = [DEPLOYERS[name](timeout=args.timeout) for name in args.deployers]
        return runner.run_all(context, deployers)
    finally:
        log.teardown(handlers)
