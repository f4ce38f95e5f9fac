#!/usr/bin/env python3
from __future__ import annotations

import json
import logging.config
from pathlib import Path
from typing import Optional

import click
import numpy as np

from feistel16 import version
from feistel16.types import Mode, FeistelError
from feistel16.util import parse_bits, format_bits, format_table, get_ddt, differential_uniformity
from feistel16.feistel_cipher import (SBOX, INV_SBOX, BLOCK_SIZE, HALF_SIZE, trace, output_block,
                                      transform, transform_compat, encrypt_np, decrypt_np)


log = logging.getLogger(__name__)


def setup_logging(filename: Optional[Path] = None, verbose: bool = False):
    config_file = Path(__file__).parent / 'log_config.json'
    with config_file.open('r') as f:
        config = json.load(f)

    if filename:
        config['handlers']['file']['filename'] = str(filename)
        config['root']['handlers'].append('file')
    else:
        del config['handlers']['file']

    if verbose:
        config['handlers']['console']['level'] = 'DEBUG'

    logging.getLogger().setLevel(logging.DEBUG)
    logging.config.dictConfig(config)


class BitString(click.ParamType):
    name = 'bits'

    def __init__(self, width: int):
        self.width = width

    def convert(self, value, param, ctx) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_bits(value, self.width, param.human_readable_name if param else 'value')
        except FeistelError as e:
            self.fail(str(e), param, ctx)


def echo_result(result: int, as_hex: bool) -> None:
    if as_hex:
        click.echo(f'{result:04x}')
    else:
        click.echo(format_bits(result, BLOCK_SIZE))

def echo_trace(states: list[tuple[int, int]], mode: Mode) -> None:
    rounds = range(1, len(states)) if mode is Mode.encrypt else range(len(states) - 1, 0, -1)
    click.echo(f'entry:   L={format_bits(states[0][0], HALF_SIZE)} R={format_bits(states[0][1], HALF_SIZE)}')
    for rnd, (left, right) in zip(rounds, states[1:]):
        click.echo(f'round {rnd}: L={format_bits(left, HALF_SIZE)} R={format_bits(right, HALF_SIZE)}')

def run_mode(block: int, key: int, mode: Mode, show_trace: bool, as_hex: bool) -> None:
    states = trace(block, key, mode)
    if show_trace:
        echo_trace(states, mode)
    result = output_block(states, mode)
    log.info(f'{mode.value} {format_bits(block, BLOCK_SIZE)} -> {format_bits(result, BLOCK_SIZE)}')
    echo_result(result, as_hex)


@click.group()
@click.version_option(version)
@click.option('--log-file', type=click.Path(dir_okay=False, writable=True), default=None, help="additionally write DEBUG log to this file")
@click.option('-v', '--verbose', is_flag=True, help="log round states to the console")
def cli(log_file: str|None, verbose: bool) -> None:
    setup_logging(Path(log_file) if log_file else None, verbose)
    log.debug(f'feistel16 version {version}')


@cli.command()
@click.argument('block', type=BitString(BLOCK_SIZE))
@click.argument('key', type=BitString(BLOCK_SIZE))
@click.option('--trace', 'show_trace', is_flag=True, help="print the state after every round")
@click.option('--hex', 'as_hex', is_flag=True, help="print the result as 4 hex digits")
def encrypt(block: int, key: int, show_trace: bool, as_hex: bool) -> None:
    """encrypt a 16-bit binary block"""
    run_mode(block, key, Mode.encrypt, show_trace, as_hex)


@cli.command()
@click.argument('block', type=BitString(BLOCK_SIZE))
@click.argument('key', type=BitString(BLOCK_SIZE))
@click.option('--trace', 'show_trace', is_flag=True, help="print the state after every round")
@click.option('--hex', 'as_hex', is_flag=True, help="print the result as 4 hex digits")
def decrypt(block: int, key: int, show_trace: bool, as_hex: bool) -> None:
    """decrypt a 16-bit binary block"""
    run_mode(block, key, Mode.decrypt, show_trace, as_hex)


@cli.command('transform')
@click.argument('block')
@click.argument('key')
@click.argument('mode')
@click.option('--compat', is_flag=True, help="print 0000000000000000 on invalid input instead of failing")
def transform_cmd(block: str, key: str, mode: str, compat: bool) -> None:
    """encrypt or decrypt BLOCK depending on MODE ('encrypt' or 'decrypt')"""
    if compat:
        click.echo(transform_compat(block, key, mode))
        return
    try:
        click.echo(transform(block, key, mode))
    except FeistelError as e:
        raise click.UsageError(str(e))


@cli.command()
def sbox() -> None:
    """print the S-box, its inverse and its difference distribution table"""
    click.echo(' S-box '.center(54, '-'))
    click.echo(format_table(SBOX))
    click.echo(' inverse S-box '.center(54, '-'))
    click.echo(format_table(INV_SBOX))
    click.echo(' DDT '.center(54, '-'))
    ddt = get_ddt(SBOX)
    click.echo(format_table(ddt))
    click.echo(f'differential uniformity: {differential_uniformity(ddt)}')


@cli.command()
@click.argument('key', type=BitString(BLOCK_SIZE))
def roundtrip(key: int) -> None:
    """check decrypt(encrypt(P, KEY), KEY) == P for all 2^16 blocks P"""
    blocks = np.arange(1 << BLOCK_SIZE, dtype=np.uint16)
    ciphertexts = encrypt_np(blocks, key)
    recovered = decrypt_np(ciphertexts, key)

    mismatches = np.flatnonzero(recovered != blocks)
    num_distinct = len(np.unique(ciphertexts))
    log.info(f'RESULT key={format_bits(key, BLOCK_SIZE)}: {len(mismatches)} mismatches, {num_distinct} distinct ciphertexts')
    if len(mismatches):
        first = int(mismatches[0])
        raise click.ClickException(f'round trip failed for {len(mismatches)} blocks, first: {format_bits(first, BLOCK_SIZE)}')
    click.echo(f'ok: all {len(blocks)} blocks round-trip, {num_distinct} distinct ciphertexts')


if __name__ == "__main__":
    cli()
