"""Tests for certbot_deploy._internal.deployers.pkcs12."""
import os
import stat
import sys
from unittest import mock

from cryptography.hazmat.primitives.serialization import pkcs12 as crypto_pkcs12
import pytest

from certbot_deploy import errors
from certbot_deploy._internal.runner import Status
from certbot_deploy.tests import util as test_util


class Pkcs12DeployerTest(test_util.LineageTestCase):
    """Tests for certbot_deploy._internal.deployers.pkcs12.Deployer."""

    def setUp(self):
        super().setUp()
        from certbot_deploy._internal.deployers.pkcs12 import Deployer
        self.deployer = Deployer()
        self.mock_chown = mock.patch("certbot_deploy.util.shutil.chown").start()
        self.addCleanup(mock.patch.stopall)

    def _run(self):
        from certbot_deploy._internal.runner import run
        return run(self.context, self.deployer)

    def _config(self, **pkcs12):
        section = {"pfxPath": self.out_dir}
        section.update(pkcs12)
        test_util.write_deploy_config(self.lineage, {"pkcs12": section,
                                                     "technitium": {"user": "admin"}})

    def _stored_password(self):
        return test_util.read_deploy_config(self.lineage)["pkcs12"]["pfxPass"]

    def test_export(self):
        self._config()
        outcome = self._run()

        assert outcome.status is Status.SUCCESS
        pfx_path = os.path.join(self.out_dir, "a.example.org.pfx")
        password = self._stored_password()
        assert len(password) == 20
        assert password.isalnum() and password.isascii()
        with open(pfx_path, "rb") as f:
            bundle = crypto_pkcs12.load_pkcs12(f.read(), password.encode())
        assert bundle.key is not None
        assert outcome.artifact.path == pfx_path
        assert outcome.artifact.filename == "a.example.org.pfx"
        assert outcome.artifact.password == password

    def test_defaults_applied(self):
        self._config()
        self._run()
        pfx_path = os.path.join(self.out_dir, "a.example.org.pfx")
        self.mock_chown.assert_called_once_with(mock.ANY, "root", "root")
        assert stat.S_IMODE(os.stat(pfx_path).st_mode) == 0o440

    def test_overrides(self):
        self._config(pfxFile="custom.pfx", pfxUser="www-data", pfxGroup="ssl-cert",
                     pfxMode="640")
        outcome = self._run()
        pfx_path = os.path.join(self.out_dir, "custom.pfx")
        assert outcome.artifact.path == pfx_path
        assert os.path.exists(pfx_path)
        assert not os.path.exists(os.path.join(self.out_dir, "a.example.org.pfx"))
        self.mock_chown.assert_called_once_with(mock.ANY, "www-data", "ssl-cert")
        assert stat.S_IMODE(os.stat(pfx_path).st_mode) == 0o640

    def test_password_fresh_every_run(self):
        self._config()
        self._run()
        first = self._stored_password()
        self._run()
        second = self._stored_password()
        assert first != second
        pfx_path = os.path.join(self.out_dir, "a.example.org.pfx")
        with open(pfx_path, "rb") as f:
            crypto_pkcs12.load_pkcs12(f.read(), second.encode())

    def test_other_sections_preserved(self):
        self._config()
        self._run()
        assert test_util.read_deploy_config(self.lineage)["technitium"] == {"user": "admin"}

    def test_missing_pfx_path_key(self):
        test_util.write_deploy_config(self.lineage, {"pkcs12": {"pfxFile": "x.pfx"}})
        outcome = self._run()
        assert outcome.exit_code == 2
        assert os.listdir(self.out_dir) == []

    def test_missing_output_directory(self):
        self._config(pfxPath=os.path.join(self.tempdir, "nowhere"))
        outcome = self._run()
        assert outcome.exit_code == 1
        assert "pfxPass" not in test_util.read_deploy_config(self.lineage)["pkcs12"]

    def test_conversion_failure_keeps_config(self):
        self._config(pfxPass="previous")
        os.remove(self.context.key_path)
        outcome = self._run()
        assert outcome.exit_code == 1
        assert self._stored_password() == "previous"
        assert os.listdir(self.out_dir) == []

    def test_chown_failure_rolls_back(self):
        self._config(pfxPass="previous")
        self.mock_chown.side_effect = PermissionError("not root")
        outcome = self._run()
        assert outcome.exit_code == 1
        assert self._stored_password() == "previous"
        assert os.listdir(self.out_dir) == []

    def test_password_store_failure_keeps_previous_bundle(self):
        self._config()
        pfx_path = os.path.join(self.out_dir, "a.example.org.pfx")
        with open(pfx_path, "wb") as f:
            f.write(b"previous bundle")
        with mock.patch("certbot_deploy.configuration.util.write_atomically",
                        side_effect=OSError("disk full")):
            outcome = self._run()
        assert outcome.exit_code == 1
        assert os.listdir(self.out_dir) == ["a.example.org.pfx"]
        with open(pfx_path, "rb") as f:
            assert f.read() == b"previous bundle"

    def test_target_is_directory(self):
        self._config(pfxPass="previous")
        os.makedirs(os.path.join(self.out_dir, "a.example.org.pfx"))
        outcome = self._run()
        assert outcome.exit_code == 1
        assert self._stored_password() == "previous"
        assert os.listdir(self.out_dir) == ["a.example.org.pfx"]

    def test_rename_failure_restores_password(self):
        self._config(pfxPass="previous")
        pfx_path = os.path.join(self.out_dir, "a.example.org.pfx")
        real_replace = os.replace

        def replace(src, dst):
            if dst == pfx_path:
                raise PermissionError("denied")
            return real_replace(src, dst)

        with mock.patch("certbot_deploy._internal.deployers.pkcs12.os.replace",
                        side_effect=replace):
            outcome = self._run()
        assert outcome.exit_code == 1
        assert self._stored_password() == "previous"
        assert os.listdir(self.out_dir) == []

    def test_invalid_mode(self):
        self._config(pfxMode="r--r-----")
        with pytest.raises(errors.InitializationError):
            from certbot_deploy.configuration import DeployConfig
            self.deployer.parse(DeployConfig.load(self.context.deploy_config_path),
                                self.context, None)


class ScenarioTest(test_util.TempDirTestCase):
    """A renewal of a.example.org with only a pkcs12 section configured."""

    def test_scenario(self):
        from certbot_deploy import main
        lineage = os.path.join(self.tempdir, "lineage")
        out = os.path.join(self.tempdir, "out")
        os.makedirs(out)
        test_util.make_lineage(lineage, ("a.example.org",))
        test_util.write_deploy_config(lineage, {"pkcs12": {"pfxPath": out}})
        env = {"RENEWED_DOMAINS": "a.example.org", "RENEWED_LINEAGE": lineage}

        with mock.patch.dict(os.environ, env), \
                mock.patch("certbot_deploy.util.shutil.chown"):
            code = main.main(["--log-file", os.path.join(self.tempdir, "deploy.log"),
                              "pkcs12"])

        assert code == 0
        assert os.path.exists(os.path.join(out, "a.example.org.pfx"))
        assert len(test_util.read_deploy_config(lineage)["pkcs12"]["pfxPass"]) == 20


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
