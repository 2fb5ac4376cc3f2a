# --- File: ./tests/test_provider.py ---
import io
import subprocess

import pytest

from resticweb import provider as provider_module
from resticweb.errors import ProviderError
from resticweb.provider import ResticCli


class FakeRun:
    def __init__(self, returncode=0, stdout=b'', stderr=b'', exc=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.exc = exc
        self.cmds = []

    def __call__(self, cmd, **kwargs):
        self.cmds.append(cmd)
        if self.exc:
            raise self.exc
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


class FakePopen:
    def __init__(self, stdout=b'', stderr=b'', returncode=0):
        self._out = stdout
        self._err = stderr
        self._returncode = returncode
        self.returncode = None
        self.killed = False
        self.cmd = None
        self.stderr_read_before_wait = None

    def __call__(self, cmd, **kwargs):
        self.cmd = cmd
        self.stdout = io.BytesIO(self._out)
        self.stderr = io.BytesIO(self._err)
        return self

    def poll(self):
        return self.returncode

    def wait(self):
        self.stderr_read_before_wait = self.stderr.closed or self.stderr.tell() == len(self._err)
        self.returncode = self._returncode
        return self.returncode

    def kill(self):
        self.killed = True


@pytest.fixture
def cli():
    return ResticCli(binary='restic', repository='/srv/repo', password_file='/etc/restic.pw',
                     options=['s3.connections=4'], timeout=30)


def test_base_command(cli):
    assert cli.base_command() == [
        'restic', '-r', '/srv/repo', '--password-file', '/etc/restic.pw', '-o', 's3.connections=4',
    ]
    assert ResticCli(no_cache=True, cache_dir='/tmp/c').base_command() == ['restic', '--no-cache']
    assert ResticCli(cache_dir='/tmp/c').base_command() == ['restic', '--cache-dir', '/tmp/c']


def test_from_config():
    cli = ResticCli.from_config({'RESTIC_BINARY': '/usr/bin/restic', 'RESTIC_REPOSITORY': 'sftp:host:/r',
                                 'RESTIC_TIMEOUT': 5, 'RESTIC_OPTIONS': None})
    assert cli.binary == '/usr/bin/restic'
    assert cli.repository == 'sftp:host:/r'
    assert cli.timeout == 5
    assert cli.options == []


def test_ls_command_and_output(cli, monkeypatch):
    fake = FakeRun(stdout=b'{"id": "abc"}\n')
    monkeypatch.setattr(provider_module.subprocess, 'run', fake)

    buf = cli.ls('latest', paths=['/home'], recursive=True, long=True)

    assert buf.read() == b'{"id": "abc"}\n'
    assert fake.cmds[0][-6:] == ['ls', '--json', '--long', '--recursive', 'latest', '/home']


def test_snapshots_command(cli, monkeypatch):
    fake = FakeRun(stdout=b'[]')
    monkeypatch.setattr(provider_module.subprocess, 'run', fake)

    cli.snapshots(hosts=['h1'], tags=['daily', 'weekly'], paths=['/etc'])

    assert fake.cmds[0][-10:] == ['snapshots', '--json', '--host', 'h1', '--tag', 'daily',
                                  '--tag', 'weekly', '--path', '/etc']


def test_nonzero_exit_raises(cli, monkeypatch):
    stderr = "\n".join(f"line {i}" for i in range(20)).encode()
    monkeypatch.setattr(provider_module.subprocess, 'run', FakeRun(returncode=1, stderr=stderr))

    with pytest.raises(ProviderError) as excinfo:
        cli.ls('abc')
    assert excinfo.value.returncode == 1
    assert str(excinfo.value).endswith("line 7\n...")
    assert 'line 19' in excinfo.value.stderr


@pytest.mark.parametrize('exc, text', [
    (FileNotFoundError(), 'not found'),
    (subprocess.TimeoutExpired('restic', 30), 'within 30 seconds'),
])
def test_run_failures_raise(cli, monkeypatch, exc, text):
    monkeypatch.setattr(provider_module.subprocess, 'run', FakeRun(exc=exc))
    with pytest.raises(ProviderError) as excinfo:
        cli.snapshots()
    assert text in str(excinfo.value)


def test_dump_streams_chunks(cli, monkeypatch):
    fake = FakePopen(stdout=b'abcdefgh')
    monkeypatch.setattr(provider_module.subprocess, 'Popen', fake)

    chunks = list(cli.dump('abc', '/a.txt', chunk_size=3))

    assert chunks == [b'abc', b'def', b'gh']
    assert fake.cmd[-3:] == ['dump', 'abc', '/a.txt']
    assert fake.stdout.closed
    assert not fake.killed


def test_dump_failure_before_output(cli, monkeypatch):
    monkeypatch.setattr(provider_module.subprocess, 'Popen',
                        FakePopen(stderr=b'path "/a.txt" not found in snapshot', returncode=1))
    with pytest.raises(ProviderError) as excinfo:
        cli.dump('abc', '/a.txt')
    assert 'not found in snapshot' in str(excinfo.value)


def test_dump_empty_file(cli, monkeypatch):
    monkeypatch.setattr(provider_module.subprocess, 'Popen', FakePopen())
    assert list(cli.dump('abc', '/empty')) == []


def test_dump_reads_stderr_before_waiting(cli, monkeypatch, caplog):
    fake = FakePopen(stdout=b'partial', stderr=b'x' * 200000 + b'\nread error', returncode=1)
    monkeypatch.setattr(provider_module.subprocess, 'Popen', fake)

    with caplog.at_level('ERROR', logger=provider_module.logger.name):
        assert b''.join(cli.dump('abc', '/a.txt', chunk_size=4)) == b'partial'

    assert fake.stderr_read_before_wait is True
    assert fake.stderr.closed
    assert 'restic dump exited with 1' in caplog.text


def test_dump_aborted_download_kills_restic(cli, monkeypatch):
    fake = FakePopen(stdout=b'abcdefgh', stderr=b'signal: killed')
    monkeypatch.setattr(provider_module.subprocess, 'Popen', fake)

    chunks = cli.dump('abc', '/a.txt', chunk_size=3)
    assert next(chunks) == b'abc'
    chunks.close()

    assert fake.killed
    assert fake.stderr_read_before_wait is True
