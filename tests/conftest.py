"""Fixtures used across the test suite."""

import os
from pathlib import Path
from shutil import rmtree
from tempfile import mkdtemp, mkstemp

import pytest

from .images import boot_sector, gpt_entry, gpt_image, mbr_entry


@pytest.fixture
def tempdir():
    """Fixture providing a new temporary directory for testing purposes.

    Returns a ``pathlib.Path`` object representing the path of the temporary directory.
    """
    path = Path(mkdtemp())
    yield path
    rmtree(path)  # clean up


@pytest.fixture
def tempfile():
    """Fixture providing a new temporary file for testing purposes.

    Returns a ``pathlib.Path`` object representing the path of the temporary file.
    """
    fd, path_str = mkstemp()
    os.close(fd)  # we are going to use a Path object instead
    path = Path(path_str)
    yield path
    path.unlink(missing_ok=True)  # clean up


@pytest.fixture
def mbr_image():
    """Boot sector holding a single Linux partition in slot 3."""
    return boot_sector([bytes(16), bytes(16), mbr_entry(0x83, 2048, 204800)])


@pytest.fixture
def gpt_image_single():
    """GPT disk image with 128 entries of 128 bytes at LBA 2, one of them used."""
    return gpt_image([gpt_entry(34, 2047, name='Linux filesystem')])
