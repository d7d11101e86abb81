"""Shared fixtures for resolver tests."""

import pytest

from linkscope.config import ResolverConfig
from linkscope.resolver import RedirectResolver

from tests.fakes import FakeNetwork


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def resolver(network):
    r = RedirectResolver(network, ResolverConfig(timeout=5.0))
    r.initialize()
    return r
