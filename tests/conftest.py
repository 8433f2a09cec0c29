"""Pytest configuration and fixtures"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from src.infrastructure.logging import setup_logging


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure structlog once for the test session"""
    setup_logging()


@pytest.fixture
def test_base_dir() -> Generator[Path, None, None]:
    """Create a temporary base directory for filesystem tests"""
    temp_dir = tempfile.mkdtemp(prefix="deadline_io_test_")
    base_dir = Path(temp_dir)

    yield base_dir

    # Cleanup; restore access to directories a test locked down
    for root, dirs, _ in os.walk(temp_dir):
        for name in dirs:
            os.chmod(os.path.join(root, name), 0o755)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def in_base_dir(test_base_dir: Path, monkeypatch) -> Path:
    """Run the test with the working directory set to the base directory"""
    monkeypatch.chdir(test_base_dir)
    return test_base_dir


@pytest.fixture
def sample_file(test_base_dir: Path) -> Path:
    """Create a small file with known contents"""
    path = test_base_dir / "sample.txt"
    path.write_bytes(b"Hello, deadline-io!")
    return path


@pytest.fixture
def process_umask() -> int:
    """Current process umask"""
    mask = os.umask(0)
    os.umask(mask)
    return mask
