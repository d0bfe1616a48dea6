"""Tests for certbot_deploy._internal.log."""
import io
import logging
import os
import re
import sys

import pytest

from certbot_deploy.tests import util as test_util

LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] INFO: hello$")


class SetupTest(test_util.TempDirTestCase):
    """Tests for certbot_deploy._internal.log.setup."""

    def setUp(self):
        super().setUp()
        self.log_path = os.path.join(self.tempdir, "certbot-deploy.log")
        self.stream = io.StringIO()
        self.handlers = []

    def tearDown(self):
        from certbot_deploy._internal import log
        log.teardown(self.handlers)
        super().tearDown()

    def _setup(self, *args, **kwargs):
        from certbot_deploy._internal import log
        self.handlers = log.setup(*args, stream=self.stream, **kwargs)

    def test_file_and_stream(self):
        self._setup(self.log_path)
        logging.getLogger("certbot_deploy.test").info("hello")
        for handler in self.handlers:
            handler.flush()

        assert LINE_RE.match(self.stream.getvalue().strip())
        with open(self.log_path) as f:
            assert LINE_RE.match(f.read().strip())

    def test_appends(self):
        with open(self.log_path, "w") as f:
            f.write("previous run\n")
        self._setup(self.log_path)
        logging.getLogger("certbot_deploy.test").info("hello")
        for handler in self.handlers:
            handler.flush()
        with open(self.log_path) as f:
            lines = f.read().splitlines()
        assert lines[0] == "previous run"
        assert LINE_RE.match(lines[1])

    def test_unwritable_log_file(self):
        self._setup(os.path.join(self.tempdir, "missing", "certbot-deploy.log"))
        assert len(self.handlers) == 1
        assert "Unable to open log file" in self.stream.getvalue()
        logging.getLogger("certbot_deploy.test").info("hello")
        assert "hello" in self.stream.getvalue()

    def test_quiet_keeps_file_at_info(self):
        from certbot_deploy._internal import log
        self._setup(self.log_path, level=log.level_from_flags(0, True))
        logging.getLogger("certbot_deploy.test").info("hello")
        for handler in self.handlers:
            handler.flush()
        assert self.stream.getvalue() == ""
        with open(self.log_path) as f:
            assert "hello" in f.read()


@pytest.mark.parametrize("verbose_count,quiet,expected", [
    (0, False, logging.INFO),
    (1, False, logging.DEBUG),
    (5, False, logging.DEBUG),
    (2, True, logging.WARNING),
])
def test_level_from_flags(verbose_count, quiet, expected):
    from certbot_deploy._internal.log import level_from_flags
    assert level_from_flags(verbose_count, quiet) == expected


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
