"""Shared fixtures for distributor tests."""

import pytest
from rich.console import Console

from distributor.config import DistributorConfig
from distributor.prompt import ScriptedConfirmationGate


@pytest.fixture
def config(tmp_path):
    """Default configuration rooted at a temporary working directory."""
    return DistributorConfig(DistributorConfig.get_default(), tmp_path)


@pytest.fixture
def console():
    """Console that records output instead of printing it."""
    return Console(record=True, width=200, highlight=False)


@pytest.fixture
def gate():
    """Gate that answers with each prompt's default."""
    return ScriptedConfirmationGate()


@pytest.fixture
def make_gate():
    """Factory for gates replaying the given answers."""
    def _make(*answers):
        return ScriptedConfirmationGate(answers)
    return _make
