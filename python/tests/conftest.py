"""Shared fixtures for the overlap graph tests."""

import pytest

from olcgraph_core import OverlapConfiguration


@pytest.fixture
def small_config():
    """Dense 4-mer seeds suited to toy reads."""
    return OverlapConfiguration(seed_length=4, seed_step=1, max_diagonal_shift=2)


@pytest.fixture
def example_reads():
    """Read 2 lies inside read 0; reads 0 and 1 share CCCC."""
    return ["AAAACCCC", "CCCCGGGG", "AACC"]
