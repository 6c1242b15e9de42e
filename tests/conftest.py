"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, surfaces, solvers and in-memory image fetchers.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from pydantic_settings import SettingsConfigDict

import xcanvas.config.settings as settings_module
from xcanvas.config.settings import Settings
from xcanvas.core.layout.solver import LayoutSolver
from xcanvas.core.rendering.surface import RasterSurface

from tests.utils.helpers import fixed_measure
from tests.utils.mocks import ControlledFetcher, StaticFetcher


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    __test__ = False

    environment: str = "testing"
    debug: bool = True
    log_level: str = "DEBUG"

    model_config = SettingsConfigDict(env_file=".env.test", env_prefix="XCANVAS_")


@pytest.fixture(scope="session")
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture(scope="session", autouse=True)
def override_settings(test_settings: TestSettings):
    """Override application settings for testing."""
    with patch.object(settings_module, "settings", test_settings):
        yield test_settings


@pytest.fixture(scope="session")
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="xcanvas_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def solver() -> LayoutSolver:
    """Layout solver with a deterministic text measurer."""
    return LayoutSolver(fixed_measure, font_size=16, line_height_ratio=1.5)


@pytest.fixture
def surface() -> RasterSurface:
    """A blank 200x100 surface."""
    return RasterSurface(200, 100)


@pytest.fixture
def static_fetcher() -> StaticFetcher:
    """Fetcher serving images registered in ``static_fetcher.images``."""
    return StaticFetcher()


@pytest.fixture
def controlled_fetcher() -> ControlledFetcher:
    """Fetcher whose loads resolve only when the test says so."""
    return ControlledFetcher()
