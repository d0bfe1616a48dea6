"""Certbot deploy hook constants."""
import logging
from typing import Any

CLI_DEFAULTS: dict[str, Any] = dict(  # noqa
    config_files=["/etc/letsencrypt/certbot-deploy.ini"],
    deployers=["all"],
    lineage=None,
    domains=None,
    log_file="/var/log/certbot-deploy.log",
    timeout=None,
    verbose_count=0,
    quiet=False,
)
"""Defaults for CLI flags."""

DEFAULT_LOGGING_LEVEL = logging.INFO
"""Default logging level to use when not in quiet mode."""

QUIET_LOGGING_LEVEL = logging.WARNING
"""Logging level to use in quiet mode."""

LOG_FMT = "[%(asctime)s] %(levelname)s: %(message)s"
"""Format of every log line, on the terminal and in the log file."""

LOG_DATE_FMT = "%Y-%m-%d %H:%M:%S"

CERT_FILENAME = "cert.pem"
FULLCHAIN_FILENAME = "fullchain.pem"
KEY_FILENAME = "privkey.pem"
DEPLOY_CONFIG_FILENAME = "deploy.json"

PKCS12_KEY = "pkcs12"
PFX_PASS_KEY = "pfxPass"

PFX_DEFAULT_USER = "root"
PFX_DEFAULT_GROUP = "root"
PFX_DEFAULT_MODE = "440"

LIGHTSPEED_INSTALL_DIR = "/usr/local/rocket/etc"
LIGHTSPEED_SERVICE_DIR = "/etc/lantern"
LIGHTSPEED_CERT_FILENAME = "cert.pem"
LIGHTSPEED_KEY_FILENAME = "cert_key.pem"

TECHNITIUM_DEFAULT_HOST = "127.0.0.1:443"

RSYNC_DEFAULT_PUB_MODE = "644"
RSYNC_DEFAULT_PRIV_MODE = "600"

FAILURE_POLICIES = ("ignore", "any", "all")
"""Accepted values of ``clearPass.failurePolicy``."""
