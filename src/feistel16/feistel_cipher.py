"""
4-round Feistel network on a 16-bit block with a 16-bit key.

The key is divided into two 8-bit subkeys, K1 (leftmost 8 bits) and K2
(rightmost 8 bits), alternating every round:

1. Divide the block into two 8-bit halves, L0 and R0.
2. For i = 1 to 4:
   - Li = Ri-1
   - Ri = Li-1 ^ F(Ri-1, Ki), with Ki = K1 for odd and K2 for even rounds
3. The result is L4 || R4.

F XORs Ri-1 with Ki and substitutes both nibbles of the result with the S-box

    0 1 2 3 4 5 6 7 8 9 A B C D E F
    6 7 8 9 A B C D E F 0 1 2 3 4 5

e.g. F(10101100, 10101010): 10101100 ^ 10101010 = 00000110,
0000 -> 0110 and 0110 -> 1100, thus 01101100.

Decryption feeds the two ciphertext halves in swapped order, walks the rounds
backwards (K2, K1, K2, K1) and swaps the halves back on output.
"""
from __future__ import annotations

TYPE_CHECKING=False
if TYPE_CHECKING:
    from typing import Any, Callable

import logging

import numpy as np
import numpy.typing as npt

from .types import Mode, FeistelError, FormatError, InvalidModeError
from .util import parse_bits, format_bits, is_permutation, get_inverse_sbox


log = logging.getLogger(__name__)

SBOX = np.array([0x6, 0x7, 0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xE, 0xF, 0x0, 0x1, 0x2, 0x3, 0x4, 0x5], dtype=np.uint8)
SBOX.flags.writeable = False
if not is_permutation(SBOX):
    raise ValueError('SBOX must be a permutation of 0..15')

INV_SBOX = get_inverse_sbox(SBOX)

BLOCK_SIZE = 16
HALF_SIZE = BLOCK_SIZE // 2
HALF_MASK = (1 << HALF_SIZE) - 1
NUM_ROUNDS = 4

SENTINEL = '0' * BLOCK_SIZE


def _check_width(value: int, width: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise FormatError(f'{name} must be an integer, got {value!r}')
    if not 0 <= value < (1 << width):
        raise FormatError(f'{name} must be a {width}-bit value, got {value:#x}')
    return int(value)

def parse_mode(mode: str|Mode) -> Mode:
    if isinstance(mode, Mode):
        return mode
    try:
        return Mode(mode)
    except ValueError:
        raise InvalidModeError(f"mode must be either 'encrypt' or 'decrypt', got {mode!r}") from None


def split_block(block: int) -> tuple[int, int]:
    return (block >> HALF_SIZE) & HALF_MASK, block & HALF_MASK

def join_halves(left: int, right: int) -> int:
    return (left << HALF_SIZE) | right

def substitute(value: int) -> int:
    return (int(SBOX[(value >> 4) & 0xF]) << 4) | int(SBOX[value & 0xF])

def round_function(half: int, subkey: int) -> int:
    return substitute(half ^ subkey)


def _substitute_np(values: np.ndarray[Any, np.dtype[np.uint8]]) -> np.ndarray[Any, np.dtype[np.uint8]]:
    return (SBOX[values >> 4] << 4) | SBOX[values & 0xF]

def _round_function_np(half: np.ndarray[Any, np.dtype[np.uint8]], subkey: int) -> np.ndarray[Any, np.dtype[np.uint8]]:
    return _substitute_np(half ^ np.uint8(subkey))


def key_schedule(key: int, mode: str|Mode=Mode.encrypt) -> tuple[int, int, int, int]:
    """
    subkeys in the order they are applied. encryption uses K1 in odd and K2
    in even rounds, decryption undoes round 4 first and hence starts with K2.
    """
    mode = parse_mode(mode)
    k1, k2 = split_block(_check_width(key, BLOCK_SIZE, 'key'))
    if mode is Mode.encrypt:
        return (k1, k2, k1, k2)
    return (k2, k1, k2, k1)

def feistel_rounds(left, right, subkeys, round_fn: Callable=round_function):
    """apply one Feistel round per subkey; works on ints and numpy arrays alike"""
    for subkey in subkeys:
        left, right = right, left ^ round_fn(right, subkey)
    return left, right


def trace(block: int, key: int, mode: str|Mode=Mode.encrypt) -> list[tuple[int, int]]:
    """
    return the (L, R) round states from entry to exit. for decryption the
    entry state already has the halves swapped.
    """
    mode = parse_mode(mode)
    left, right = split_block(_check_width(block, BLOCK_SIZE, 'block'))
    if mode is Mode.encrypt:
        round_numbers = range(1, NUM_ROUNDS + 1)
    else:
        round_numbers = range(NUM_ROUNDS, 0, -1)
        left, right = right, left

    states = [(left, right)]
    for rnd, subkey in zip(round_numbers, key_schedule(key, mode)):
        left, right = feistel_rounds(left, right, (subkey,))
        log.debug(f'{mode.value} round {rnd}: L={left:08b} R={right:08b} (subkey {subkey:08b})')
        states.append((left, right))
    return states

def output_block(states: list[tuple[int, int]], mode: str|Mode) -> int:
    """join the last state of `trace`, undoing the entry swap for decryption"""
    left, right = states[-1]
    if parse_mode(mode) is Mode.encrypt:
        return join_halves(left, right)
    return join_halves(right, left)

def encrypt(block: int, key: int) -> int:
    return output_block(trace(block, key, Mode.encrypt), Mode.encrypt)

def decrypt(block: int, key: int) -> int:
    return output_block(trace(block, key, Mode.decrypt), Mode.decrypt)


def _split_np(blocks: npt.ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    blocks = np.asarray(blocks)
    if blocks.dtype.kind not in 'ui':
        raise FormatError(f'blocks must be integers, got dtype {blocks.dtype}')
    if np.any((blocks < 0) | (blocks > 0xFFFF)):
        raise FormatError('blocks must be 16-bit values')
    blocks = blocks.astype(np.uint16)
    return (blocks >> HALF_SIZE).astype(np.uint8), (blocks & HALF_MASK).astype(np.uint8)

def _join_np(left: np.ndarray, right: np.ndarray) -> np.ndarray[Any, np.dtype[np.uint16]]:
    return (left.astype(np.uint16) << HALF_SIZE) | right.astype(np.uint16)

def encrypt_np(blocks: npt.ArrayLike, key: int) -> np.ndarray[Any, np.dtype[np.uint16]]:
    left, right = _split_np(blocks)
    left, right = feistel_rounds(left, right, key_schedule(key, Mode.encrypt), _round_function_np)
    return _join_np(left, right)

def decrypt_np(blocks: npt.ArrayLike, key: int) -> np.ndarray[Any, np.dtype[np.uint16]]:
    left, right = _split_np(blocks)
    left, right = feistel_rounds(right, left, key_schedule(key, Mode.decrypt), _round_function_np)
    return _join_np(right, left)


def transform(block: str, key: str, mode: str|Mode) -> str:
    """
    encrypt or decrypt a 16-bit binary string block with a 16-bit binary
    string key. block, key and mode are all validated before any round runs.

    raises FormatError or InvalidModeError on invalid input.
    """
    block_val = parse_bits(block, BLOCK_SIZE, 'block')
    key_val = parse_bits(key, BLOCK_SIZE, 'key')
    mode = parse_mode(mode)

    if mode is Mode.encrypt:
        result = encrypt(block_val, key_val)
    else:
        result = decrypt(block_val, key_val)
    return format_bits(result, BLOCK_SIZE)

def transform_compat(block: str, key: str, mode: str|Mode) -> str:
    """like `transform`, but logs invalid input and returns SENTINEL instead of raising"""
    try:
        return transform(block, key, mode)
    except FeistelError as e:
        log.error(f'{type(e).__name__}: {e}', extra={'block': block, 'key': key, 'mode': str(mode)})
        return SENTINEL
