"""Pytest configuration and shared fixtures."""

import io
import json
import logging
import zipfile

import httpx
import pytest

from maxemail.api.client import ConnectionConfig, RemoteClient
from maxemail.core.logging import JsonLogFormatter


class RecordingHandler:
    """MockTransport handler that records requests and replies via a callback."""

    def __init__(self, reply):
        self.reply = reply
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.reply(request)


@pytest.fixture
def connection_config():
    """Connection config for a fake host with credentials."""
    return ConnectionConfig(host="mxm.example.test", user="api-user", password="secret")


@pytest.fixture
def make_remote(connection_config):
    """Build a RemoteClient whose requests go to a recording mock transport."""
    clients = []

    def _make(reply):
        handler = RecordingHandler(reply)
        client = RemoteClient(connection_config, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client, handler

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def zip_bytes():
    """Build an in-memory ZIP archive from a {name: bytes} mapping."""
    def _build(members):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, content in members.items():
                zf.writestr(name, content)
        return buffer.getvalue()

    return _build



class JsonCaptureHandler(logging.Handler):
    """Logging handler keeping each record as the parsed JSON line."""

    def __init__(self):
        super().__init__()
        self.setFormatter(JsonLogFormatter())
        self.entries = []

    def emit(self, record):
        self.entries.append(json.loads(self.format(record)))


@pytest.fixture
def json_events():
    """Logger for TransferHelper progress events, rendered as JSON entries."""
    events = logging.Logger("maxemail.transfer-events", level=logging.DEBUG)
    handler = JsonCaptureHandler()
    events.addHandler(handler)
    return events, handler
