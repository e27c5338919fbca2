"""Shared test fixtures and configuration for backend tests."""
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.config import AppSettings, StaticSettings, StorageSettings, reset_config, set_config
from app.files.service import FileStorageService
from app.main import app
from app.messages.store import JsonlMessageStore, set_message_store

Part = Tuple[List[bytes], bytes]


def build_multipart(
    boundary: bytes,
    parts: List[Part],
    newline: bytes = b"\r\n",
    terminate: bool = True,
) -> bytes:
    """Assemble a multipart body from ``(header_lines, payload)`` pairs."""
    out = b""
    for headers, payload in parts:
        out += b"--" + boundary + newline
        for header in headers:
            out += header + newline
        out += newline + payload + newline
    if terminate:
        out += b"--" + boundary + b"--" + newline
    return out


def file_part(filename: str, payload: bytes, name: str = "file",
              content_type: Optional[str] = None) -> Part:
    headers = [
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"'.encode()
    ]
    if content_type:
        headers.append(f"Content-Type: {content_type}".encode())
    return headers, payload


def field_part(name: str, value: str) -> Part:
    return [f'Content-Disposition: form-data; name="{name}"'.encode()], value.encode()


@pytest.fixture
def settings(tmp_path):
    """Point storage and static assets at a temporary directory."""
    cfg = AppSettings(
        storage=StorageSettings(data_dir=str(tmp_path / "data")),
        static=StaticSettings(dist_dir=str(tmp_path / "dist")),
    )
    set_config(cfg)
    yield cfg
    reset_config()


@pytest.fixture
def message_store(settings):
    store = JsonlMessageStore(settings.storage.messages_path)
    set_message_store(store)
    yield store
    set_message_store(None)


@pytest.fixture
def file_service(settings):
    FileStorageService.reset_instance()
    service = FileStorageService.get_instance(settings.storage.uploads_path)
    yield service
    FileStorageService.reset_instance()


@pytest.fixture
def api_client(settings, message_store, file_service):
    """Provide a TestClient for the main FastAPI app backed by temp storage."""
    return TestClient(app)
