"""
Binary weight files.

Current format, little-endian::

    magic      4 bytes   b'NTW\\x00'
    version    uint32    1
    count      uint32    number of tables
    sizes      uint64 x count
    weights    float32 x sum(sizes), table after table

Legacy format: a ``uint32`` table count followed by the raw ``float32`` tables. It does not store the table
sizes, so the reader must be told them.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Sequence
from pathlib import Path

from numpy import dtype, float32, frombuffer, ndarray, zeros

logger = logging.getLogger(__name__)

MAGIC = b'NTW\x00'
VERSION = 1

_WEIGHT = dtype('<f4')
_HEADER = struct.Struct('<4sII')
_COUNT = struct.Struct('<I')


class WeightFileError(OSError):
    """Raised when a weight file cannot be opened, read, or understood."""


def save_weights(path: str | Path, tables: Sequence[ndarray], legacy: bool = False) -> None:
    """
    Write weight tables.

    Parameters
    ----------
    path : str | Path
        Destination, replaced once the new file is complete.
    tables : Sequence[ndarray]
        The tables, written as ``float32``.
    legacy : bool, optional
        Write the bare legacy format instead of the current one.

    Raises
    ------
    WeightFileError
        If the file cannot be written. An existing destination is then left untouched.
    """
    path = Path(path)
    partial = path.with_name(f'.{path.name}.tmp')
    try:
        with partial.open('wb') as stream:
            if legacy:
                stream.write(_COUNT.pack(len(tables)))
            else:
                stream.write(_HEADER.pack(MAGIC, VERSION, len(tables)))
                stream.write(struct.pack(f'<{len(tables)}Q', *(table.size for table in tables)))
            for table in tables:
                stream.write(table.astype(_WEIGHT, copy=False).tobytes())
        partial.replace(path)
    except OSError as error:
        partial.unlink(missing_ok=True)
        raise WeightFileError(f'Cannot write weights to {path}: {error}') from error
    logger.info('Saved %d weight tables to %s', len(tables), path)


def load_weights(path: str | Path, legacy_sizes: Sequence[int] | None = None) -> list[ndarray]:
    """
    Read weight tables, detecting the format.

    Parameters
    ----------
    path : str | Path
        Source file.
    legacy_sizes : Sequence[int], optional
        Size of each table, needed for legacy files only. Legacy files holding more tables than sizes given
        are rejected.

    Returns
    -------
    list[ndarray]
        The ``float32`` tables.

    Raises
    ------
    WeightFileError
        If the file is missing, truncated, or of an unknown version.
    """
    path = Path(path)
    try:
        with path.open('rb') as stream:
            data = stream.read()
    except OSError as error:
        raise WeightFileError(f'Cannot read weights from {path}: {error}') from error

    if data[:4] == MAGIC:
        tables = _read_current(data, path)
    else:
        tables = _read_legacy(data, path, legacy_sizes)
    logger.info('Loaded %d weight tables from %s', len(tables), path)
    return tables


def _read_current(data: bytes, path: Path) -> list[ndarray]:
    if len(data) < _HEADER.size:
        raise WeightFileError(f'{path}: truncated header')
    _, version, count = _HEADER.unpack_from(data)
    if version != VERSION:
        raise WeightFileError(f'{path}: unsupported version {version}')

    offset = _HEADER.size
    if len(data) < offset + 8 * count:
        raise WeightFileError(f'{path}: truncated table sizes')
    sizes = struct.unpack_from(f'<{count}Q', data, offset)
    return _read_tables(data, offset + 8 * count, sizes, path)


def _read_legacy(data: bytes, path: Path, sizes: Sequence[int] | None) -> list[ndarray]:
    if len(data) < _COUNT.size:
        raise WeightFileError(f'{path}: truncated table count')
    (count,) = _COUNT.unpack_from(data)
    if sizes is None or len(sizes) < count:
        raise WeightFileError(f'{path}: legacy file with {count} tables needs their sizes')
    return _read_tables(data, _COUNT.size, list(sizes)[:count], path)


def _read_tables(data: bytes, offset: int, sizes: Sequence[int], path: Path) -> list[ndarray]:
    tables = []
    for size in sizes:
        end = offset + size * _WEIGHT.itemsize
        if len(data) < end:
            raise WeightFileError(f'{path}: truncated weights')
        if size == 0:
            tables.append(zeros(0, dtype=float32))
            continue
        tables.append(frombuffer(data, dtype=_WEIGHT, count=size, offset=offset).astype(float32))
        offset = end
    if offset != len(data):
        logger.warning('%s: %d trailing bytes ignored', path, len(data) - offset)
    return tables
