import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    # Import the catalog package before domain traversal so its submodules are
    # loaded through the normal import system (avoids a partial-module cycle).
    import tracking.catalog  # noqa: F401
    from tracking.domain import tracking

    tracking.init()
    tracking.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure and shared services after every test"""
    yield

    from protean import current_domain
    from tracking.basket.service import reset_lifecycle
    from tracking.catalog import reset_catalog
    from tracking.qr import reset_qr_encoder

    reset_lifecycle()
    reset_catalog()
    reset_qr_encoder()

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()
