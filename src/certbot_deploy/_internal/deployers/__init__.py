"""Deploy hook targets."""
from certbot_deploy._internal.deployers import clearpass
from certbot_deploy._internal.deployers import common
from certbot_deploy._internal.deployers import lightspeed
from certbot_deploy._internal.deployers import pkcs12
from certbot_deploy._internal.deployers import rsync
from certbot_deploy._internal.deployers import technitium
from certbot_deploy._internal.deployers import validate

# Order of `all`: the bundle must exist before its consumers run.
DEPLOYERS: dict[str, type[common.Deployer]] = {
    cls.name: cls for cls in (
        validate.Deployer,
        pkcs12.Deployer,
        clearpass.Deployer,
        technitium.Deployer,
        lightspeed.Deployer,
        rsync.Deployer,
    )
}
