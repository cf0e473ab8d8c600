"""Shared fixtures: an in-memory stand-in for the Drive REST client."""
import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from guestupload.models import FOLDER_MIME_TYPE


class FakeDriveClient:
    """
    In-memory Drive client.

    put_outcomes maps a file name to what its upload returns: an int status
    code, an exception instance to raise, or "hang" to block after the first
    chunk until cancelled.
    """

    def __init__(self, folders=None):
        self.folders: List[Dict[str, Any]] = list(folders or [])
        self.list_calls = 0
        self.create_calls: List[str] = []
        self.initiated: List[str] = []
        self.received: Dict[str, bytes] = {}
        self.initiate_errors: Dict[str, Exception] = {}
        self.put_outcomes: Dict[str, Any] = {}
        self.list_error: Exception = None
        self.in_flight = asyncio.Event()
        self._next_id = 1

    def _new_id(self, prefix: str) -> str:
        value = f"{prefix}{self._next_id}"
        self._next_id += 1
        return value

    async def list_child_folders(self, owner_token, parent_id):
        self.list_calls += 1
        await asyncio.sleep(0)
        if self.list_error:
            raise self.list_error
        return [dict(folder) for folder in self.folders if folder.get("parent") == parent_id]

    async def create_folder(self, owner_token, name, parent_id):
        self.create_calls.append(name)
        await asyncio.sleep(0)
        folder = {
            "id": self._new_id("folder-"),
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parent": parent_id,
        }
        self.folders.append(folder)
        return folder

    async def initiate_upload(self, owner_token, name, parent_id, mime_type, size):
        self.initiated.append(name)
        if name in self.initiate_errors:
            raise self.initiate_errors[name]
        return f"https://upload.example/session/{name}"

    async def put_content(self, owner_token, session_url, content, mime_type, size):
        name = session_url.rsplit("/", 1)[-1]
        outcome = self.put_outcomes.get(name, 200)
        if isinstance(outcome, Exception):
            raise outcome

        data = bytearray()
        async for chunk in content:
            data.extend(chunk)
            if outcome == "hang":
                self.in_flight.set()
                await asyncio.Event().wait()
        self.received[name] = bytes(data)

        if outcome != 200:
            return httpx.Response(outcome)
        return httpx.Response(
            200,
            json={"id": self._new_id("file-"), "name": name, "size": str(len(data)), "mimeType": mime_type},
        )


@pytest.fixture
def fake_drive():
    return FakeDriveClient(
        folders=[
            {"id": "F1", "name": "Alice", "mimeType": FOLDER_MIME_TYPE, "parent": "ROOT"},
        ]
    )


@pytest.fixture
def make_drive():
    return FakeDriveClient
