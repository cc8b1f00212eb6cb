from collections.abc import Generator
from pathlib import Path

import pytest

from dynsql import TemplateStore
from tests.utils.dogs import (
    Q_DOGS_SELECT,
    Q_DOGS_UPDATE,
    Q_DOGS_WHERE,
    DogStore,
)


@pytest.fixture
def dog_templates() -> TemplateStore:
    store = TemplateStore()
    store.register_all([Q_DOGS_SELECT, Q_DOGS_UPDATE], partials=[Q_DOGS_WHERE])
    return store


@pytest.fixture
def dog_store(tmp_path: Path) -> Generator[DogStore, None, None]:
    store = DogStore(tmp_path / "dog_store_test.db")
    store.init()
    yield store
    store.close()
