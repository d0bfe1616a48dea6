"""Test utilities."""
import datetime
import json
import logging
import os
import shutil
import tempfile
from typing import Any
from typing import Optional
import unittest

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from certbot_deploy.configuration import RenewalContext


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def make_cert(subject: str, issuer: str, public_key: Any, signing_key: Any,
              not_before: datetime.datetime, lifetime_days: int,
              sans: Optional[list[str]] = None, ca: bool = False) -> x509.Certificate:
    """Return a certificate for subject signed by signing_key."""
    builder = x509.CertificateBuilder(
        issuer_name=_name(issuer),
        subject_name=_name(subject),
        public_key=public_key,
        serial_number=x509.random_serial_number(),
        not_valid_before=not_before,
        not_valid_after=not_before + datetime.timedelta(days=lifetime_days),
    ).add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(san) for san in sans]),
            critical=False)
    return builder.sign(private_key=signing_key, algorithm=hashes.SHA256())


def make_lineage(directory: str, domains: tuple[str, ...] = ("a.example.org",),
                 expired: bool = False) -> RenewalContext:
    """Write cert.pem, chain.pem, fullchain.pem and privkey.pem to directory.

    The leaf is issued by a throwaway CA so the chain has two members.

    """
    now = datetime.datetime.now(datetime.timezone.utc)
    not_before = now - datetime.timedelta(days=120 if expired else 1)

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = make_cert("Test CA", "Test CA", ca_key.public_key(), ca_key,
                        not_before, 3650, ca=True)
    key = ec.generate_private_key(ec.SECP256R1())
    cert = make_cert(domains[0], "Test CA", key.public_key(), ca_key,
                     not_before, 90, sans=list(domains))

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    chain_pem = ca_cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(serialization.Encoding.PEM,
                                serialization.PrivateFormat.PKCS8,
                                serialization.NoEncryption())
    os.makedirs(directory, exist_ok=True)
    for filename, data in (("cert.pem", cert_pem), ("chain.pem", chain_pem),
                           ("fullchain.pem", cert_pem + chain_pem),
                           ("privkey.pem", key_pem)):
        with open(os.path.join(directory, filename), "wb") as f:
            f.write(data)
    return RenewalContext(tuple(domains), directory)


def write_deploy_config(lineage: str, data: Any) -> str:
    """Write data as deploy.json in lineage and return its path."""
    path = os.path.join(lineage, "deploy.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return path


def read_deploy_config(lineage: str) -> Any:
    with open(os.path.join(lineage, "deploy.json"), encoding="utf-8") as f:
        return json.load(f)


class TempDirTestCase(unittest.TestCase):
    """Base test class which sets up and tears down a temporary directory"""

    def setUp(self) -> None:
        """Execute before test"""
        self.tempdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        """Execute after test"""
        logging.shutdown()
        shutil.rmtree(self.tempdir)


class LineageTestCase(TempDirTestCase):
    """Test class which sets up a renewed lineage under the temp directory."""

    domains: tuple[str, ...] = ("a.example.org", "www.a.example.org")

    def setUp(self) -> None:
        super().setUp()
        self.lineage = os.path.join(self.tempdir, "live", self.domains[0])
        self.context = make_lineage(self.lineage, self.domains)
        self.out_dir = os.path.join(self.tempdir, "out")
        os.makedirs(self.out_dir)
