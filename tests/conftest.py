"""Root pytest configuration for all tests."""

import logging

import pytest

# atlassian-python-api logs at ERROR level for lookups of pages that don't
# exist, which is normal while resolving targets and ancestors.
logging.getLogger("atlassian").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep Confluence credentials of the developer's shell out of tests."""
    for name in ("CONFLUENCE_URL", "CONFLUENCE_USER", "CONFLUENCE_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)
