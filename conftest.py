"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture(autouse=True)
def reset_template_cache():
    """Re-read messages.yaml for every test."""
    from core.notifications import templates

    templates._templates = None
    yield
    templates._templates = None
