"""
Shared fixtures. The fakes themselves live in tests/fakes.py.
"""

from __future__ import annotations

import pytest

from tests.fakes import FakeCoordinator, FakeRpcClient


@pytest.fixture
def rpc_client() -> FakeRpcClient:
    return FakeRpcClient()


@pytest.fixture
def coordinator() -> FakeCoordinator:
    return FakeCoordinator()
