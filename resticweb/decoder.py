# --- File: ./resticweb/decoder.py ---
"""
Decodes the captured stdout of `restic ls --json` and `restic snapshots --json`.

restic writes one JSON value per line: the snapshot first, then one value per
file or directory. Values are read one line at a time so only the record being
decoded is held in memory.
"""
import json

from .errors import DecodeError
from .records import header_from_dict, path_item_from_dict


class RecordStream:
    """Reads whitespace separated JSON values from a binary stream, tracking byte offsets."""

    def __init__(self, stream, encoding='utf-8'):
        self._stream = stream
        self._encoding = encoding
        self._decoder = json.JSONDecoder()
        self._buf = ''
        self._buf_offset = 0
        self._eof = False

    def _fill(self):
        if self._eof:
            return False
        chunk = self._stream.readline()
        if not chunk:
            self._eof = True
            return False
        start = self._buf_offset + len(self._buf.encode(self._encoding))
        try:
            self._buf += chunk.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid {self._encoding} data", start + e.start) from e
        return True

    def _skip_whitespace(self):
        stripped = self._buf.lstrip(' \t\r\n')
        skipped = len(self._buf) - len(stripped)
        if skipped:
            # JSON whitespace is ASCII, one byte per character.
            self._buf_offset += skipped
            self._buf = stripped

    def next_value(self):
        """Returns (offset, value) for the next JSON value, or None at end of stream."""
        while True:
            self._skip_whitespace()
            if not self._buf:
                if not self._fill():
                    return None
                continue
            try:
                value, end = self._decoder.raw_decode(self._buf)
            except json.JSONDecodeError as e:
                # JSON tokens never span a line break, so an error at the end of
                # the buffer means the value continues on the next line.
                truncated = e.pos >= len(self._buf.rstrip(' \t\r\n'))
                if truncated and self._fill():
                    continue
                reason = "truncated JSON value" if truncated else f"malformed JSON: {e.msg}"
                raise DecodeError(reason, self._buf_offset) from e
            offset = self._buf_offset
            self._buf_offset += len(self._buf[:end].encode(self._encoding))
            self._buf = self._buf[end:]
            return offset, value

    def __iter__(self):
        while True:
            item = self.next_value()
            if item is None:
                return
            yield item


def _iter_entries(records):
    for offset, value in records:
        yield path_item_from_dict(value, offset)


def decode_listing(stream):
    """
    Decodes a listing into (SnapshotHeader, iterator of PathItem).

    The header is read immediately; entries are decoded as the iterator is
    consumed, and a bad entry raises DecodeError from the iterator.
    """
    records = RecordStream(stream)
    first = records.next_value()
    if first is None:
        raise DecodeError("listing output is empty, expected a snapshot record", 0)
    offset, value = first
    header = header_from_dict(value, offset)
    return header, _iter_entries(records)


def decode_snapshots(stream):
    """Decodes the single JSON array written by `restic snapshots --json`."""
    records = RecordStream(stream)
    first = records.next_value()
    if first is None:
        raise DecodeError("snapshots output is empty, expected a JSON array", 0)
    offset, value = first
    if not isinstance(value, list):
        raise DecodeError(f"expected a JSON array of snapshots, got {type(value).__name__}", offset)
    trailing = records.next_value()
    if trailing is not None:
        raise DecodeError("unexpected data after the snapshots array", trailing[0])
    return [header_from_dict(item, offset) for item in value]
