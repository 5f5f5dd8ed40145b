from __future__ import annotations

import pytest

from fakes import FakeDocumentStore
from remongo.state.cache import LayerCache


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def cache() -> LayerCache:
    return LayerCache()
