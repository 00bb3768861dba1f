"""Shared fixtures."""

import pytest

from agentcollab.system import CollaborationSystem

from fakes import FakeGenerator


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def system(generator):
    return CollaborationSystem("user-1", generator)
