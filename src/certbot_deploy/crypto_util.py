"""Crypto utility functions for deploy hooks."""
import datetime
import logging
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from certbot_deploy import errors

logger = logging.getLogger(__name__)


def export_pkcs12(privkey_path: str, fullchain_path: str, password: str,
                  friendly_name: Optional[str] = None) -> bytes:
    """Convert a PEM key and full chain into a PKCS#12 bundle.

    The first certificate of the full chain is the leaf, the remaining
    ones are bundled as CA certificates.

    :param str privkey_path: path to the PEM private key
    :param str fullchain_path: path to the PEM leaf + intermediates
    :param str password: export password protecting the bundle
    :param str friendly_name: bundle friendly name

    :returns: DER encoded PKCS#12 bundle
    :rtype: bytes

    :raises .errors.ConversionError: if the inputs cannot be read or
        serialized

    """
    try:
        with open(privkey_path, "rb") as f:
            key = serialization.load_pem_private_key(f.read(), password=None)
        with open(fullchain_path, "rb") as f:
            certs = x509.load_pem_x509_certificates(f.read())
    except (OSError, ValueError, TypeError) as error:
        logger.debug("Failed to load certificate material", exc_info=True)
        raise errors.ConversionError(f"Unable to read certificate material: {error}")

    cert, cas = certs[0], certs[1:]
    name = friendly_name.encode() if friendly_name else None
    try:
        return pkcs12.serialize_key_and_certificates(
            name, key, cert, cas or None,  # type: ignore[arg-type]
            serialization.BestAvailableEncryption(password.encode()))
    except (ValueError, TypeError) as error:
        raise errors.ConversionError(f"Unable to export PKCS#12 bundle: {error}")


def notAfter(cert_path: str) -> datetime.datetime:
    """When does the cert at cert_path stop being valid?

    :param str cert_path: path to a cert in PEM format

    :returns: the notAfter value from the cert at cert_path
    :rtype: :class:`datetime.datetime`

    """
    with open(cert_path, "rb") as f:
        cert = x509.load_pem_x509_certificate(f.read())
    return cert.not_valid_after_utc
