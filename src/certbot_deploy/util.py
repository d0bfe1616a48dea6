"""Utilities for all deploy hooks."""
import errno
import logging
import os
import secrets
import shutil
import string
import subprocess
import tempfile
from typing import Callable
from typing import Mapping
from typing import Optional

from certbot_deploy import errors

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits
PASSWORD_LENGTH = 20


def run_script(params: list[str], log: Callable[[str], None] = logger.error,
               env: Optional[Mapping[str, str]] = None) -> tuple[str, str]:
    """Run the script with the given params.

    :param list params: List of parameters to pass to subprocess.run
    :param callable log: Logger method to use for errors
    :param dict env: Extra environment variables for the child process

    :raises .errors.SubprocessError: if the command cannot be run or
        exits with a non-zero status

    """
    child_env = dict(os.environ)
    if env:
        child_env.update(env)
    try:
        proc = subprocess.run(params,
                              check=False,
                              stdout=subprocess.PIPE,
                              stderr=subprocess.PIPE,
                              universal_newlines=True,
                              env=child_env)

    except (OSError, ValueError):
        msg = "Unable to run the command: %s" % " ".join(params)
        log(msg)
        raise errors.SubprocessError(msg)

    if proc.returncode != 0:
        msg = "Error while running %s.\n%s\n%s" % (
            " ".join(params), proc.stdout, proc.stderr)
        log(msg)
        raise errors.SubprocessError(msg)

    return proc.stdout, proc.stderr


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random alphanumeric password.

    :param int length: number of characters

    :returns: password drawn from ``[A-Za-z0-9]``
    :rtype: str

    """
    return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def parse_mode(mode: str) -> int:
    """Parse an octal permission string such as ``"440"``.

    :raises .errors.InitializationError: if mode is not octal

    """
    try:
        return int(str(mode), 8)
    except ValueError:
        raise errors.InitializationError(f"Invalid file mode: {mode!r}")


def set_ownership(path: str, user: str, group: str, mode: int) -> None:
    """Apply owner, group and permission bits to path.

    :raises OSError: if the change is refused by the OS
    :raises LookupError: if user or group does not exist

    """
    shutil.chown(path, user, group)
    os.chmod(path, mode)


def write_atomically(path: str, data: bytes, mode: Optional[int] = None) -> None:
    """Replace the file at path with data without a partial-write window.

    The data is written to a temporary file in the same directory, which
    is then renamed over path.

    :param str path: destination file
    :param bytes data: new contents
    :param int mode: permissions for the new file, defaults to those of
        the file being replaced, else 0o600

    """
    if mode is None:
        try:
            mode = os.stat(path).st_mode & 0o7777
        except FileNotFoundError:
            mode = 0o600
    directory, name = os.path.split(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        safely_remove(tmp_path)
        raise


def safely_remove(path: str) -> None:
    """Remove a file that may not exist."""
    try:
        os.remove(path)
    except OSError as err:
        if err.errno != errno.ENOENT:
            raise
