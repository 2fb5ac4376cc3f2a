# --- File: ./resticweb/provider.py ---
import io
import os
import logging
import subprocess

from .errors import ProviderError

logger = logging.getLogger(__name__)

MAX_ERROR_LINES = 8


def _normalize_error(err: str) -> str:
    """Trims restic's stderr to something that fits on an error page."""
    err = (err or "").strip()
    if not err:
        return "Unknown restic error"
    lines = err.splitlines()
    if len(lines) > MAX_ERROR_LINES:
        return "\n".join(lines[:MAX_ERROR_LINES]) + "\n..."
    return err


class ResticCli:
    """
    Runs the restic command line and hands back its captured stdout.
    Repository, password and cache settings come from the app config; everything
    else restic reads from the inherited environment (RESTIC_PASSWORD etc.).
    """

    def __init__(self, binary='restic', repository='', password_file='', cache_dir='',
                 no_cache=False, options=(), timeout=600, env=None):
        self.binary = binary
        self.repository = repository
        self.password_file = password_file
        self.cache_dir = cache_dir
        self.no_cache = no_cache
        self.options = list(options)
        self.timeout = timeout
        self.env = env

    @classmethod
    def from_config(cls, config):
        return cls(
            binary=config.get('RESTIC_BINARY', 'restic'),
            repository=config.get('RESTIC_REPOSITORY', ''),
            password_file=config.get('RESTIC_PASSWORD_FILE', ''),
            cache_dir=config.get('RESTIC_CACHE_DIR', ''),
            no_cache=config.get('RESTIC_NO_CACHE', False),
            options=config.get('RESTIC_OPTIONS') or (),
            timeout=config.get('RESTIC_TIMEOUT', 600),
        )

    def base_command(self):
        cmd = [self.binary]
        if self.repository:
            cmd += ['-r', self.repository]
        if self.password_file:
            cmd += ['--password-file', self.password_file]
        if self.no_cache:
            cmd.append('--no-cache')
        elif self.cache_dir:
            cmd += ['--cache-dir', self.cache_dir]
        for opt in self.options:
            cmd += ['-o', opt]
        return cmd

    def _environ(self):
        env = os.environ.copy()
        if self.env:
            env.update(self.env)
        return env

    def run(self, args):
        """Runs restic with `args` and returns its stdout as a BytesIO."""
        cmd = self.base_command() + list(args)
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            proc = subprocess.run(cmd, env=self._environ(), capture_output=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ProviderError(f"restic binary not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise ProviderError(f"restic did not finish within {self.timeout} seconds") from e
        except OSError as e:
            raise ProviderError(f"Could not run restic: {e}") from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode('utf-8', errors='replace')
            raise ProviderError(_normalize_error(stderr), returncode=proc.returncode, stderr=stderr)
        return io.BytesIO(proc.stdout)

    def ls(self, snapshot_id, paths=(), recursive=False, long=False):
        args = ['ls', '--json']
        if long:
            args.append('--long')
        if recursive:
            args.append('--recursive')
        args.append(snapshot_id)
        args.extend(paths)
        return self.run(args)

    def snapshots(self, hosts=(), tags=(), paths=()):
        args = ['snapshots', '--json']
        for host in hosts:
            args += ['--host', host]
        for tag in tags:
            args += ['--tag', tag]
        for path in paths:
            args += ['--path', path]
        return self.run(args)

    def dump(self, snapshot_id, path, chunk_size=64 * 1024):
        """
        Streams a single file out of a snapshot. The first chunk is read before
        returning so a failing restic call surfaces as ProviderError up front.
        """
        cmd = self.base_command() + ['dump', snapshot_id, path]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            proc = subprocess.Popen(cmd, env=self._environ(), stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as e:
            raise ProviderError(f"restic binary not found: {self.binary}") from e
        except OSError as e:
            raise ProviderError(f"Could not run restic: {e}") from e

        first = proc.stdout.read(chunk_size)
        if not first:
            stderr = proc.stderr.read().decode('utf-8', errors='replace')
            returncode = proc.wait()
            proc.stdout.close()
            proc.stderr.close()
            if returncode != 0:
                raise ProviderError(_normalize_error(stderr), returncode=returncode, stderr=stderr)
            return iter(())
        return self._stream(proc, first, chunk_size)

    def _stream(self, proc, first, chunk_size):
        completed = False
        try:
            yield first
            for chunk in iter(lambda: proc.stdout.read(chunk_size), b''):
                yield chunk
            completed = True
        finally:
            proc.stdout.close()
            # The client went away mid-download.
            if not completed:
                proc.kill()
            # Drain stderr before waiting so a full pipe cannot block the exit.
            stderr = proc.stderr.read().decode('utf-8', errors='replace')
            proc.stderr.close()
            returncode = proc.wait()
            if completed and returncode != 0:
                logger.error(f"restic dump exited with {returncode}: {_normalize_error(stderr)}")
