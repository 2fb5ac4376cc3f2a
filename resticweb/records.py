# --- File: ./resticweb/records.py ---
import re
import datetime
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import DecodeError

# restic writes RFC 3339 timestamps with nanosecond precision, e.g.
# "2020-09-21T10:20:30.123456789+02:00". datetime only keeps microseconds.
_RFC3339_RE = re.compile(
    r'^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})'
    r'(?:\.(?P<frac>\d+))?'
    r'(?P<tz>Z|z|[+-]\d{2}:\d{2})?$'
)

# Go's zero time.Time, which restic emits for unset timestamps.
_GO_ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=datetime.timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parses an RFC 3339 timestamp. Returns None for empty or zero times."""
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    match = _RFC3339_RE.match(value.strip())
    if not match:
        raise ValueError(f"invalid timestamp '{value}'")
    text = match.group('base').replace(' ', 'T')
    frac = match.group('frac')
    if frac:
        text += '.' + frac[:6].ljust(6, '0')
    tz = match.group('tz')
    if tz in (None, 'Z', 'z'):
        tz = '+00:00'
    parsed = datetime.datetime.fromisoformat(text + tz)
    if parsed == _GO_ZERO_TIME:
        return None
    return parsed


@dataclass(frozen=True)
class PathItem:
    """One file or directory entry of a snapshot listing."""
    name: str
    type: str
    path: str
    uid: int = 0
    gid: int = 0
    size: int = 0
    mode: int = 0
    mtime: Optional[datetime.datetime] = None
    atime: Optional[datetime.datetime] = None
    ctime: Optional[datetime.datetime] = None
    struct_type: str = 'node'

    @property
    def is_dir(self):
        return self.type == 'dir'

    def as_inferred_dir(self, name):
        """Returns the directory-only record used for an ancestor nobody listed."""
        return PathItem(name=name, type='dir', path=self.path)


@dataclass(frozen=True)
class SnapshotHeader:
    """The snapshot record that precedes the entries of a listing."""
    id: str
    short_id: str = ''
    paths: Tuple[str, ...] = ()
    time: Optional[datetime.datetime] = None
    hostname: str = ''
    username: str = ''
    tags: Tuple[str, ...] = ()
    tree: str = ''
    parent: str = ''
    struct_type: str = 'snapshot'
    extra: dict = field(default_factory=dict, compare=False, repr=False)


# ===================================================================
# --- DICT -> RECORD CONVERSION ---
# ===================================================================

_HEADER_FIELDS = ('id', 'short_id', 'paths', 'time', 'hostname', 'username',
                  'tags', 'tree', 'parent', 'struct_type')


def _expect(obj, key, kind, default, offset):
    value = obj.get(key, default)
    if value is None:
        return default
    # bool is an int subclass; restic never sends one for a numeric field.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DecodeError(f"field '{key}' has unexpected type {type(value).__name__}", offset)
    return value


def _expect_str_list(obj, key, offset):
    value = obj.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError(f"field '{key}' must be a list of strings", offset)
    return tuple(value)


def _timestamp(obj, key, offset):
    try:
        return parse_timestamp(obj.get(key))
    except ValueError as e:
        raise DecodeError(f"field '{key}': {e}", offset) from e


def header_from_dict(obj, offset=None) -> SnapshotHeader:
    if not isinstance(obj, dict):
        raise DecodeError(f"snapshot record must be a JSON object, got {type(obj).__name__}", offset)
    struct_type = _expect(obj, 'struct_type', str, 'snapshot', offset)
    if struct_type != 'snapshot':
        raise DecodeError(f"expected a snapshot record, got struct_type '{struct_type}'", offset)
    snapshot_id = _expect(obj, 'id', str, '', offset)
    if not snapshot_id:
        raise DecodeError("snapshot record has no 'id'", offset)
    return SnapshotHeader(
        id=snapshot_id,
        short_id=_expect(obj, 'short_id', str, snapshot_id[:8], offset),
        paths=_expect_str_list(obj, 'paths', offset),
        time=_timestamp(obj, 'time', offset),
        hostname=_expect(obj, 'hostname', str, '', offset),
        username=_expect(obj, 'username', str, '', offset),
        tags=_expect_str_list(obj, 'tags', offset),
        tree=_expect(obj, 'tree', str, '', offset),
        parent=_expect(obj, 'parent', str, '', offset),
        struct_type=struct_type,
        extra={k: v for k, v in obj.items() if k not in _HEADER_FIELDS},
    )


def path_item_from_dict(obj, offset=None) -> PathItem:
    if not isinstance(obj, dict):
        raise DecodeError(f"node record must be a JSON object, got {type(obj).__name__}", offset)
    struct_type = _expect(obj, 'struct_type', str, 'node', offset)
    if struct_type != 'node':
        raise DecodeError(f"expected a node record, got struct_type '{struct_type}'", offset)
    path = _expect(obj, 'path', str, None, offset)
    if path is None:
        raise DecodeError("node record has no 'path'", offset)
    name = _expect(obj, 'name', str, '', offset) or path.rstrip('/').rsplit('/', 1)[-1]
    return PathItem(
        name=name,
        type=_expect(obj, 'type', str, 'file', offset),
        path=path,
        uid=_expect(obj, 'uid', int, 0, offset),
        gid=_expect(obj, 'gid', int, 0, offset),
        size=_expect(obj, 'size', int, 0, offset),
        mode=_expect(obj, 'mode', int, 0, offset),
        mtime=_timestamp(obj, 'mtime', offset),
        atime=_timestamp(obj, 'atime', offset),
        ctime=_timestamp(obj, 'ctime', offset),
        struct_type=struct_type,
    )
