import uuid
from unittest.mock import Mock

import pytest

from bistro.config.config_loader import clear_config_cache
from bistro.dm.dialogue_engine import DialogueEngine
from bistro.menu import menu_catalog
from bistro.menu.menu_catalog import MenuCatalog


@pytest.fixture(autouse=True)
def clear_caches():
    """Start every test from a freshly parsed menu and keyword table."""
    menu_catalog.clear_cache()
    clear_config_cache()
    yield
    menu_catalog.clear_cache()
    clear_config_cache()


@pytest.fixture
def catalog():
    # empty source url: never reach out over HTTP in tests
    return MenuCatalog(source_url="")


@pytest.fixture
def cart():
    return Mock()


@pytest.fixture
def transcripts():
    store = Mock()
    store.append_turn.return_value = True
    return store


@pytest.fixture
def engine(catalog, cart, transcripts):
    return DialogueEngine(catalog, cart, transcripts)


@pytest.fixture
def session_id():
    return str(uuid.uuid4())
