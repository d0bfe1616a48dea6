import pytest


# Keep the invoking shell's certbot and CA bundle environment out of the tests.
@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RENEWED_LINEAGE", "RENEWED_DOMAINS", "CERTBOT_DEPLOY_LOG",
                 "REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE"):
        monkeypatch.delenv(name, raising=False)
