"""Shared test fixtures for HeadCatalog tests."""
import sys
from pathlib import Path

import pytest

# Ensure the project root is in sys.path so that `headcatalog.*` imports work
# when running pytest from the repo root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from headcatalog.core.services.catalog_status import catalog_status  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_catalog_status():
    """Reset module-level singleton before each test."""
    catalog_status.reset()
    yield
    catalog_status.reset()
