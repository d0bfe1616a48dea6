"""Deploy hook command line argument & config processing."""
import argparse
from typing import Any
from typing import Optional

import configargparse

from certbot_deploy._internal import constants
from certbot_deploy._internal.deployers import DEPLOYERS

ALL = "all"


def flag_default(name: str) -> Any:
    """Default value for CLI flag."""
    return constants.CLI_DEFAULTS[name]


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive number")
    return number


def build_parser() -> configargparse.ArgParser:
    parser = configargparse.ArgParser(
        prog="certbot-deploy",
        description="Push a renewed certificate to its downstream consumers. "
                    "Meant to be run by certbot as a deploy hook.",
        args_for_setting_config_path=["-c", "--config"],
        default_config_files=flag_default("config_files"),
        config_arg_help_message="path to config file (default: {0})".format(
            " and ".join(flag_default("config_files"))))

    parser.add_argument(
        "deployers", nargs="*", metavar="DEPLOYER",
        default=None,
        help="Deployers to run, in order: {0}, or {1} (default: {1})".format(
            ", ".join(DEPLOYERS), ALL))
    parser.add_argument(
        "--lineage", env_var="RENEWED_LINEAGE", default=flag_default("lineage"),
        help="Live directory of the renewed certificate")
    parser.add_argument(
        "--domains", env_var="RENEWED_DOMAINS", default=flag_default("domains"),
        help="Space separated renewed domains")
    parser.add_argument(
        "--log-file", env_var="CERTBOT_DEPLOY_LOG", default=flag_default("log_file"),
        help="Log file appended to by every run (default: %(default)s)")
    parser.add_argument(
        "--timeout", type=_positive_float, default=flag_default("timeout"),
        help="Timeout in seconds for network calls (default: transport default)")
    parser.add_argument(
        "-v", "--verbose", dest="verbose_count", action="count",
        default=flag_default("verbose_count"),
        help="This flag can be used multiple times to incrementally increase "
             "the verbosity of output, e.g. -vv.")
    parser.add_argument(
        "-q", "--quiet", dest="quiet", action="store_true", default=flag_default("quiet"),
        help="Silence all terminal output except warnings and errors.")
    return parser


def prepare_and_parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line, config file and environment.

    ``all`` expands to every deployer in their default order.

    """
    parser = build_parser()
    namespace = parser.parse_args(args)
    names: list[str] = []
    for name in namespace.deployers or flag_default("deployers"):
        if name != ALL and name not in DEPLOYERS:
            parser.error(f"unknown deployer: {name} (choose from {ALL}, {', '.join(DEPLOYERS)})")
        expanded = list(DEPLOYERS) if name == ALL else [name]
        names.extend(n for n in expanded if n not in names)
    namespace.deployers = names
    return namespace
