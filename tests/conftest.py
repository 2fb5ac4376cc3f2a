# --- File: ./tests/conftest.py ---
import io
import json

import pytest

from resticweb import create_app
from resticweb.errors import ProviderError


class FakeProvider:
    """Stands in for ResticCli: returns canned output and records each call."""

    def __init__(self):
        self.ls_output = b''
        self.snapshots_output = b'[]'
        self.dump_chunks = []
        self.error = None
        self.calls = []

    def ls(self, snapshot_id, paths=(), recursive=False, long=False):
        self.calls.append(('ls', snapshot_id, list(paths), recursive, long))
        if self.error:
            raise self.error
        return io.BytesIO(self.ls_output)

    def snapshots(self, hosts=(), tags=(), paths=()):
        self.calls.append(('snapshots', list(hosts), list(tags), list(paths)))
        if self.error:
            raise self.error
        return io.BytesIO(self.snapshots_output)

    def dump(self, snapshot_id, path, chunk_size=64 * 1024):
        self.calls.append(('dump', snapshot_id, path))
        if self.error:
            raise self.error
        return iter(self.dump_chunks)


def _ndjson(*values):
    return b''.join(json.dumps(v).encode('utf-8') + b'\n' for v in values)


@pytest.fixture
def ndjson():
    """Encodes values the way restic does: one JSON value per line."""
    return _ndjson


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    fake = FakeProvider()
    fake.error = ProviderError("Fatal: unable to open config file: <config/> does not exist", returncode=1)
    return fake


@pytest.fixture
def app(provider):
    return create_app(test_config={
        'TESTING': True,
        'LISTING_PROVIDER': provider,
        'PROJECT_NAME': 'Test Browser',
        'RESTIC_REPOSITORY': '/srv/restic-repo',
    })


@pytest.fixture
def client(app):
    return app.test_client()
