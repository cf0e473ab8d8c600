"""Tests for FolderResolver."""
import asyncio
import gc
from unittest.mock import AsyncMock

import pytest

from guestupload.exceptions import ConfigurationError, RemoteServiceError
from guestupload.models import FOLDER_MIME_TYPE
from guestupload.services.folder_resolver import FolderResolver


@pytest.mark.asyncio
async def test_existing_folder_is_reused(fake_drive):
    resolver = FolderResolver(fake_drive)

    folder = await resolver.resolve("tok", "Alice", "ROOT")

    assert folder.id == "F1"
    assert folder.created is False
    assert fake_drive.create_calls == []


@pytest.mark.asyncio
async def test_missing_folder_is_created_once(fake_drive):
    resolver = FolderResolver(fake_drive)

    folder = await resolver.resolve("tok", "Bob", "ROOT")

    assert folder.created is True
    assert folder.name == "Bob"
    assert fake_drive.create_calls == ["Bob"]


@pytest.mark.asyncio
async def test_match_is_case_sensitive(fake_drive):
    resolver = FolderResolver(fake_drive)

    folder = await resolver.resolve("tok", "alice", "ROOT")

    assert folder.id != "F1"
    assert fake_drive.create_calls == ["alice"]


@pytest.mark.asyncio
async def test_whitespace_is_not_normalized(fake_drive):
    resolver = FolderResolver(fake_drive)

    await resolver.resolve("tok", "Alice ", "ROOT")

    assert fake_drive.create_calls == ["Alice "]


@pytest.mark.asyncio
async def test_first_match_wins():
    client = AsyncMock()
    client.list_child_folders.return_value = [
        {"id": "first", "name": "Alice", "mimeType": FOLDER_MIME_TYPE},
        {"id": "second", "name": "Alice", "mimeType": FOLDER_MIME_TYPE},
    ]

    folder = await FolderResolver(client).resolve("tok", "Alice", "ROOT")

    assert folder.id == "first"
    client.create_folder.assert_not_awaited()


@pytest.mark.asyncio
async def test_non_folder_with_same_name_is_ignored():
    client = AsyncMock()
    client.list_child_folders.return_value = [
        {"id": "file", "name": "Alice", "mimeType": "image/jpeg"},
    ]
    client.create_folder.return_value = {"id": "new"}

    folder = await FolderResolver(client).resolve("tok", "Alice", "ROOT")

    assert folder.id == "new"
    client.create_folder.assert_awaited_once_with("tok", "Alice", "ROOT")


@pytest.mark.asyncio
async def test_empty_root_is_configuration_error(fake_drive):
    resolver = FolderResolver(fake_drive)

    with pytest.raises(ConfigurationError):
        await resolver.resolve("tok", "Alice", "")

    assert fake_drive.list_calls == 0


@pytest.mark.asyncio
async def test_list_failure_is_not_retried(fake_drive):
    fake_drive.list_error = RemoteServiceError("Failed to list folders", 500)
    resolver = FolderResolver(fake_drive)

    with pytest.raises(RemoteServiceError) as exc_info:
        await resolver.resolve("tok", "Bob", "ROOT")

    assert exc_info.value.status_code == 500
    assert fake_drive.list_calls == 1
    assert fake_drive.create_calls == []


@pytest.mark.asyncio
async def test_create_failure_propagates():
    client = AsyncMock()
    client.list_child_folders.return_value = []
    client.create_folder.side_effect = RemoteServiceError("Failed to create folder", 403)

    with pytest.raises(RemoteServiceError):
        await FolderResolver(client).resolve("tok", "Bob", "ROOT")


@pytest.mark.asyncio
async def test_shared_resolver_serializes_same_name(make_drive):
    client = make_drive()
    resolver = FolderResolver(client)

    first, second = await asyncio.gather(
        resolver.resolve("tok", "Carol", "ROOT"),
        resolver.resolve("tok", "Carol", "ROOT"),
    )

    assert client.create_calls == ["Carol"]
    assert first.id == second.id


@pytest.mark.asyncio
async def test_separate_resolvers_can_race(make_drive):
    """Find-or-create has no server-side uniqueness: racing callers both create."""
    client = make_drive()

    first, second = await asyncio.gather(
        FolderResolver(client).resolve("tok", "Carol", "ROOT"),
        FolderResolver(client).resolve("tok", "Carol", "ROOT"),
    )

    assert client.create_calls == ["Carol", "Carol"]
    assert first.id != second.id


@pytest.mark.asyncio
async def test_locks_are_released_after_resolution(make_drive):
    client = make_drive()
    resolver = FolderResolver(client)

    await asyncio.gather(
        resolver.resolve("tok", "Carol", "ROOT"),
        resolver.resolve("tok", "Carol", "ROOT"),
        resolver.resolve("tok", "Dave", "ROOT"),
    )
    gc.collect()

    assert len(resolver._locks) == 0
    assert sorted(client.create_calls) == ["Carol", "Dave"]
