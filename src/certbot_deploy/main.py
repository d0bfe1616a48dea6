"""Certbot deploy hooks public entry point."""
from typing import Optional

from certbot_deploy._internal import main as internal_main


def main(cli_args: Optional[list[str]] = None) -> int:
    """Run the deploy hooks.

    :param cli_args: command line, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status of the hooks
    :rtype: `int`

    """
    return internal_main.main(cli_args)
