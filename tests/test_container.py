"""Tests for container wiring."""

import asyncio

import pytest

from kaloriya_client.adapters.json_file_store import JsonFileStore
from kaloriya_client.config import Settings, normalize_base_url
from kaloriya_client.containers import build_container
from kaloriya_client.services.storage import InMemoryStore


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.transport.base_url == "http://api.test"
    assert isinstance(container.storage, JsonFileStore)
    assert container.meal_service.cache is container.query_cache
    assert container.activity_service.mutator is container.meal_service.mutator
    assert container.bootstrapper.session is container.session_store
    asyncio.run(container.close_resources())


def test_build_container_without_storage_path(settings: Settings) -> None:
    container = build_container(settings.model_copy(update={"storage_path": None}))

    assert isinstance(container.storage, InMemoryStore)
    asyncio.run(container.close_resources())


def test_normalize_base_url() -> None:
    raw = "  https://api.kaloriya.uz/// "
    assert normalize_base_url(raw) == "https://api.kaloriya.uz"
    with pytest.raises(ValueError):
        normalize_base_url(" / ")
