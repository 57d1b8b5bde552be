#!/usr/bin/env python3
# SPDX-License-Identifier: MIT-0
# SPDX-FileCopyrightText:  2023 Istvan Pasztor
"""
Table driven CRC-8 calculator in Python

Execute this script as a command to calculate CRC-8 checksums or to run the
tests. Use this as a module to access the predefined CRC-8 algorithms (through
the CRC8_CATALOGUE dict, the lookup() and create_checksum_fn() functions) or to
build a Table from your own Params.

Typical use:

    table = make_table(lookup('CRC8_MAXIM'))
    crc = checksum(b'123456789', table)  # 0xa1

The init(), update() and complete() functions expose the same calculation in
steps so the data can be fed in chunks. A Table holds no state that changes
during the calculation, the register value is passed around explicitly, so a
single Table can be shared by any number of concurrent calculations.

The parameters of the builtin algorithms come from the CRC catalogue of the
CRC RevEng project:
https://reveng.sourceforge.io/crc-catalogue/1-15.htm#crc.cat-bits.8
"""

from typing import NamedTuple, Optional


def reverse_bits(value: int, width: int = 8):
    assert 0 <= value < (1 << width)
    return int('{v:0{w}b}'.format(v=value, w=width)[::-1], 2)


reversed_int8_bits = tuple(reverse_bits(i) for i in range(256))


class Params(NamedTuple):
    """ Parameters of a CRC-8 algorithm in the format used by the RevEng CRC
    catalogue. The check field is the CRC of b'123456789', it is used only to
    verify an implementation and never takes part in the calculation. """
    poly: int
    init: int
    refin: bool
    refout: bool
    xorout: int
    check: int
    name: str


class Table(NamedTuple):
    params: Params
    entries: tuple  # 256 precomputed register values indexed by (crc ^ byte)


def make_table(params: Params) -> Table:
    """ Creates the lookup table of an algorithm. The entries depend only on
    params.poly, the other parameters are used by update() and complete(). """
    for v in (params.poly, params.init, params.xorout):
        assert 0 <= v <= 0xff
    entries = []
    for n in range(256):
        crc = n
        for _ in range(8):
            crc = ((crc << 1) & 0xff) ^ params.poly if crc & 0x80 else crc << 1
        entries.append(crc)
    return Table(params, tuple(entries))


def init(table: Table) -> int:
    return table.params.init


def update(crc: int, data: bytes, table: Table) -> int:
    """ Feeds data into the CRC register and returns the new register value.
    The returned value can be passed back in with the next chunk of data. """
    assert 0 <= crc <= 0xff
    entries = table.entries
    if table.params.refin:  # LSB-first input, the register is MSB-first
        for b in data:
            crc = entries[crc ^ reversed_int8_bits[b]]
    else:
        for b in data:
            crc = entries[crc ^ b]
    return crc


def complete(crc: int, table: Table, *, residue: bool = False) -> int:
    """ Returns the final CRC from the register value. With residue=True the
    xorout step is skipped. """
    p = table.params
    crc = reversed_int8_bits[crc] if p.refout else crc
    return crc if residue else crc ^ p.xorout


def checksum(data: bytes, table: Table) -> int:
    return complete(update(init(table), data, table), table)


def specialized_crc(params: Params):
    """ Creates a CRC function for a specific CRC-8 algorithm. The table is
    built only once, when this function is called. """
    t = make_table(params)
    def crc_fn(data: bytes, crc: int = params.init, *, interim: bool = False,
               residue: bool = False):
        crc = update(crc, data, t)
        return crc if interim else complete(crc, t, residue=residue)
    crc_fn.table = t
    return crc_fn


_REVENG_CRC8_CATALOGUE_FILE = '''
# The lines in this file follow the format used in the online CRC catalogue of
# the CRC RevEng tool: https://reveng.sourceforge.io/crc-catalogue/all.htm
# The "key" field is the identifier used by lookup(). The "name" field keeps the
# traditional name of the algorithm, the current catalogue names are listed
# between the aliases where they differ.
#
# Precise description of the CRC algorithm parameters:
# https://reveng.sourceforge.io/crc-catalogue/all.htm#crc.legend.params

key=CRC8          poly=0x07 init=0x00 refin=false refout=false xorout=0x00 check=0xf4 name="CRC-8" alias="CRC-8/SMBUS"
key=CRC8_CDMA2000 poly=0x9b init=0xff refin=false refout=false xorout=0x00 check=0xda name="CRC-8/CDMA2000"
key=CRC8_DARC     poly=0x39 init=0x00 refin=true  refout=true  xorout=0x00 check=0x15 name="CRC-8/DARC"
key=CRC8_DVB_S2   poly=0xd5 init=0x00 refin=false refout=false xorout=0x00 check=0xbc name="CRC-8/DVB-S2"
key=CRC8_EBU      poly=0x1d init=0xff refin=true  refout=true  xorout=0x00 check=0x97 name="CRC-8/EBU" alias="CRC-8/TECH-3250,CRC-8/AES"
key=CRC8_I_CODE   poly=0x1d init=0xfd refin=false refout=false xorout=0x00 check=0x7e name="CRC-8/I-CODE"
key=CRC8_ITU      poly=0x07 init=0x00 refin=false refout=false xorout=0x55 check=0xa1 name="CRC-8/ITU" alias="CRC-8/I-432-1"
key=CRC8_MAXIM    poly=0x31 init=0x00 refin=true  refout=true  xorout=0x00 check=0xa1 name="CRC-8/MAXIM" alias="CRC-8/MAXIM-DOW,DOW-CRC"
key=CRC8_ROHC     poly=0x07 init=0xff refin=true  refout=true  xorout=0x00 check=0xd0 name="CRC-8/ROHC"
key=CRC8_WCDMA    poly=0x9b init=0x00 refin=true  refout=true  xorout=0x00 check=0x25 name="CRC-8/WCDMA"
'''


def _parse_crc_params(line: str) -> dict[str, object]:
    m = {kv[0]: kv[1] for kv in (field.split('=', 1) for field in line.split())}
    if 'poly' not in m:
        raise Exception('the required "poly" field is missing')
    invalid = set(m.keys()) - {'width', 'key', 'poly', 'init', 'refin',
                               'refout', 'xorout', 'check', 'name', 'alias'}
    if invalid:
        raise Exception('invalid parameters: ' + ', '.join(sorted(invalid)))
    if int(m.get('width', '8'), 0) != 8:
        raise Exception('only 8-bit CRC algorithms are supported')
    def unquote(s):
        return s[1:-1] if s.startswith('"') and s.endswith('"') else s
    def to_bool(s):
        if s.lower() not in ('true', 'false'):
            raise Exception('invalid bool value: %r' % s)
        return s.lower() == 'true'
    def to_byte(field):
        v = int(m.get(field, '0'), 0)
        if not 0 <= v <= 0xff:
            raise Exception('the value of "%s" does not fit in 8 bits: %s'
                            % (field, m[field]))
        return v
    return {
        'key': m.get('key'),
        'poly': to_byte('poly'),
        'init': to_byte('init'),
        'refin': to_bool(m.get('refin', 'false')),
        'refout': to_bool(m.get('refout', 'false')),
        'xorout': to_byte('xorout'),
        'check': to_byte('check'),
        'name': unquote(m.get('name', 'CUSTOM')),
        'alias': [s for s in unquote(m.get('alias', '')).split(',') if s],
    }


def _parse_crc_catalogue(crc_catalogue_file_contents) -> [dict[str, object]]:
    lines = (x.strip() for x in crc_catalogue_file_contents.splitlines())
    return [_parse_crc_params(x) for x in lines if x and not x.startswith('#')]


def _to_params(m: dict[str, object]) -> Params:
    return Params(**{field: m[field] for field in Params._fields})


_CATALOGUE_ENTRIES = _parse_crc_catalogue(_REVENG_CRC8_CATALOGUE_FILE)
CRC8_CATALOGUE = {m['key']: _to_params(m) for m in _CATALOGUE_ENTRIES}
CRC8_PARAMS = {}
for _m in _CATALOGUE_ENTRIES:
    for _name in [_m['key'], _m['name']] + _m['alias']:
        CRC8_PARAMS[_name.upper()] = CRC8_CATALOGUE[_m['key']]


def lookup(name: str) -> Optional[Params]:
    """ Returns the Params of a builtin algorithm or None if the name is
    unknown. Keys, names and aliases are accepted case-insensitively. """
    return CRC8_PARAMS.get(name.strip().upper())


# Creates and returns a CRC function with the following signature:
# def crc_fn(data: bytes, crc: int = init, *, interim: bool = False,
#            residue: bool = False):
def create_checksum_fn(name: str):
    p = lookup(name)
    if not p:
        return None
    return specialized_crc(p)


def check_params(params: Params) -> bool:
    """ Verifies the Params against its own check value. The CRC is calculated
    both in one go and by feeding in the data in smaller chunks including
    zero-sized chunks. """
    table = make_table(params)
    crc_1 = checksum(b'123456789', table)

    crc_2 = init(table)
    for chunk in (b'', b'1', b'234', b'', b'56', b'789', b''):
        crc_2 = update(crc_2, chunk, table)
    crc_2 = complete(crc_2, table)

    return crc_1 == crc_2 == params.check


def _format_params(p: Params):
    return ('poly=0x{:02x} init=0x{:02x} refin={!r} refout={!r} xorout=0x{:02x}'
            .format(p.poly, p.init, p.refin, p.refout, p.xorout))


def _test_and_list_catalogue_entries(catalogue_entries):
    passed, failed = [], []
    for entry in catalogue_entries:
        params = _to_params(entry)
        crc = checksum(b'123456789', make_table(params))
        print('{:15s} {:16s} {}'.format(entry['key'], params.name,
                                         _format_params(params)))
        print('{:32s} expected: check={:02x} test_output: check={:02x}'
              .format('', params.check, crc))
        if entry['alias']:
            print('{:32s} aliases:  {}'.format('', ', '.join(entry['alias'])))
        if check_params(params):
            passed.append(entry['key'])
        else:
            print('CRC doesn\'t match the reference "check" value.')
            failed.append(entry['key'])
    if failed:
        print('Failed CRCs: ' + ', '.join(failed))
    print('Number of failed CRC algorithms: %s' % len(failed))
    print('Number of CRC algorithms that passed the test: %s' % len(passed))
    return not failed


def _input_iterator_digits(infile, bits_per_digit, lsb_input,
                           max_chunk_size=16*1024):
    """ Yields the bytes of a textual input stream of hex (bits_per_digit=4)
    or binary (bits_per_digit=1) digits. With lsb_input the digits of each byte
    are in least significant first order. """
    import re
    p_space = re.compile(rb'\s+')
    if bits_per_digit == 4:
        p_digits = re.compile(rb'^[0-9a-fA-F]*$')
        allowed = 'hex digits, whitespace'
    else:
        p_digits = re.compile(rb'^[01]*$')
        allowed = "'0', '1', whitespace"
    digits_per_byte = 8 // bits_per_digit

    # A byte may be split between two chunks, the digits of the incomplete
    # byte are kept in leftover until the next chunk arrives.
    leftover = b''
    while 1:
        chunk = infile.read(max_chunk_size)
        if not chunk:
            break
        chunk = p_space.sub(b'', chunk)
        if not p_digits.match(chunk):
            raise Exception('invalid input character - allowed characters: '
                            + allowed)
        chunk = leftover + chunk
        n = len(chunk) - len(chunk) % digits_per_byte
        chunk, leftover = chunk[:n], chunk[n:]
        if not chunk:
            continue
        digits = (chunk[i:i+digits_per_byte] for i in range(0, n, digits_per_byte))
        if lsb_input:
            digits = (d[::-1] for d in digits)
        yield bytes(int(d.decode('ascii'), 1 << bits_per_digit) for d in digits)

    if leftover:
        raise Exception('unconsumed digits at the end of input stream: '
                        + leftover.decode('ascii'))


def _input_iterator(infile, input_format):
    """ This generator yields the input data as chunks of bytes. """
    if input_format in ('hex', 'lsb_hex'):
        # lsb_hex: least significant nibble first
        yield from _input_iterator_digits(infile, 4, input_format == 'lsb_hex')
        return
    elif input_format in ('01', 'lsb_01'):
        yield from _input_iterator_digits(infile, 1, input_format == 'lsb_01')
        return

    assert input_format == 'binary'
    MAX_CHUNK_SIZE = 128 * 1024
    while 1:
        chunk = infile.read(MAX_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def _calc_crc(args):
    name_or_params = args.crc.strip()
    custom_prefix = 'custom:'
    if name_or_params.lower().startswith(custom_prefix):
        try:
            p = _to_params(_parse_crc_params(name_or_params[len(custom_prefix):]))
        except Exception as ex:
            raise Exception('invalid "CUSTOM:" CRC parameters') from ex
    else:
        p = lookup(name_or_params)
        if p is None:
            raise Exception('invalid CRC algorithm name')

    crc_fn = specialized_crc(p)

    if not args.quiet:
        print('{} {}'.format(p.name, _format_params(p)))

    if args.format == '0xhex':
        fmt_str = '0x{:02x}'
    elif args.format == 'hex':
        fmt_str = '{:02x}'
    else:
        fmt_str = '{!r}'

    if args.continue_from is None:
        crc = crc_fn(b'', interim=True)
    else:
        crc = crc_fn(b'', args.continue_from, interim=True)
    bytes_processed = 0
    max_input_bytes = args.max_input_bytes
    for chunk in _input_iterator(args.infile, args.input_format):
        if max_input_bytes is not None:
            if max_input_bytes <= 0:
                break
            chunk = chunk[:max_input_bytes]
            max_input_bytes -= len(chunk)
        crc = crc_fn(chunk, crc, interim=True)
        bytes_processed += len(chunk)
    v = crc_fn(b'', crc, interim=args.interim_remainder, residue=args.residue)
    if not args.quiet:
        print('number of bytes processed: %s' % bytes_processed)
        if args.interim_remainder:
            fmt_str = 'interim remainder: ' + fmt_str
        elif args.residue:
            fmt_str = 'residue: ' + fmt_str
        else:
            fmt_str = 'crc: ' + fmt_str
    print(fmt_str.format(v))


def _main(argv=None):
    import argparse
    import sys
    p = argparse.ArgumentParser(description='Table driven CRC-8 calculator.')
    auto_int = lambda s: int(s, 0)
    p.add_argument('-l', '--list', action='store_true', help=
                   'list and test all builtin CRC-8 algorithms')
    p.add_argument('--residue', action='store_true', help=
                   'ouput the residue instead of the final CRC '
                   '(skip the xorout step)')
    p.add_argument('-c', '--crc', help='the name of the CRC algorithm or'
                   ' "CUSTOM: poly=X init=Y ..."')
    p.add_argument('-r', '--interim-remainder', action='store_true', help=
                   'output an interim remainder instead of the final CRC')
    p.add_argument('-k', '--continue-from', type=auto_int, help='continue CRC '
                   'calculation from the specified interim remainder')
    p.add_argument('-i', '--input-format', choices=['binary', 'hex', 'lsb_hex',
                   '01', 'lsb_01'], default='binary', help='input data format')
    p.add_argument('-m', '--max-input-bytes', type=auto_int, help=
                   'maximum number of bytes to process from the input')
    p.add_argument('-f', '--format', choices=['0xhex', 'hex', 'decimal'],
                   default='0xhex', help='output format of the crc, residue '
                   'or interim remainder')
    p.add_argument('-q', '--quiet', action='store_true', help=
                   'output only the result of the calculation')
    p.add_argument('infile', nargs='?', type=argparse.FileType('rb'), help=
                   'name of the input file, default: stdin', default=sys.stdin)
    args = p.parse_args(argv)

    if args.interim_remainder and args.residue:
        print('You can use at most one of the following parameters: '
              '--interim-remainder, --residue', file=sys.stderr)
        sys.exit(1)

    if args.list:
        sys.exit(0 if _test_and_list_catalogue_entries(_CATALOGUE_ENTRIES) else 1)

    if args.crc:
        if args.infile == sys.stdin:
            args.infile = sys.stdin.buffer # we want to read binary data not strings
        try:
            _calc_crc(args)
            sys.exit(0)
        finally:
            args.infile.close()

    p.print_help()
    sys.exit(2)


if __name__ == '__main__':
    _main()
