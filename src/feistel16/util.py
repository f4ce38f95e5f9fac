from __future__ import annotations

TYPE_CHECKING=False
if TYPE_CHECKING:
    from typing import Any

import re

import numpy as np

from .types import FormatError

_BITSTRING_RE = {}

def parse_bits(value: str, width: int, name: str='value') -> int:
    """
    parse a binary string of exactly `width` characters (most significant bit
    first) into an integer. raises FormatError for anything else.
    """
    pattern = _BITSTRING_RE.get(width)
    if pattern is None:
        pattern = _BITSTRING_RE[width] = re.compile(f'[01]{{{width}}}')

    if not isinstance(value, str) or not pattern.fullmatch(value):
        raise FormatError(f'{name} must be a {width}-bit binary string, got {value!r}')
    return int(value, 2)

def format_bits(value: int, width: int) -> str:
    return format(int(value), f'0{width}b')

def is_permutation(sbox: np.ndarray) -> bool:
    sbox = np.asarray(sbox)
    return sbox.ndim == 1 and np.array_equal(np.sort(sbox), np.arange(len(sbox)))

def get_inverse_sbox(sbox: np.ndarray) -> np.ndarray:
    if not is_permutation(sbox):
        raise ValueError('only bijective s-boxes can be inverted')
    inv = np.zeros_like(sbox)
    inv[sbox] = np.arange(len(sbox), dtype=sbox.dtype)
    inv.flags.writeable = False
    return inv

def get_ddt(sbox) -> np.ndarray[Any, np.dtype[np.uint16]]:
    """
    difference distribution table: entry [a, b] counts the inputs x with
    sbox[x] ^ sbox[x ^ a] == b. every row sums to len(sbox).
    """
    ddt = np.zeros((len(sbox), len(sbox)), dtype=np.uint16)

    for in_delta in range(len(sbox)):
        in_val = np.arange(len(sbox), dtype=sbox.dtype)
        out_delta = sbox[in_val] ^ sbox[in_val ^ in_delta]
        out_delta, counts = np.unique(out_delta, return_counts=True)

        ddt[in_delta, out_delta] = counts

    return ddt

def differential_uniformity(ddt: np.ndarray) -> int:
    """largest DDT entry outside the trivial zero-difference row"""
    return int(ddt[1:].max())

def format_table(table: np.ndarray, width: int=2) -> str:
    """hex column header followed by one row per input value"""
    header = ' ' * 3 + ' '.join(f'{i:X}'.rjust(width) for i in range(table.shape[-1]))
    if table.ndim == 1:
        return header + '\n' + ' ' * 3 + ' '.join(f'{x:X}'.rjust(width) for x in table)
    rows = [f'{i:X}: ' + ' '.join(str(x).rjust(width) for x in row) for i, row in enumerate(table)]
    return '\n'.join([header] + rows)
