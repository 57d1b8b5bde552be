import pytest

from crc8 import (
    CRC8_CATALOGUE,
    Params,
    check_params,
    checksum,
    complete,
    create_checksum_fn,
    init,
    lookup,
    make_table,
    reverse_bits,
    reversed_int8_bits,
    update
)

CHECK_DATA = b'123456789'

EXPECTED_CHECK_VALUES = {
    'CRC8': 0xF4,
    'CRC8_CDMA2000': 0xDA,
    'CRC8_DARC': 0x15,
    'CRC8_DVB_S2': 0xBC,
    'CRC8_EBU': 0x97,
    'CRC8_I_CODE': 0x7E,
    'CRC8_ITU': 0xA1,
    'CRC8_MAXIM': 0xA1,
    'CRC8_ROHC': 0xD0,
    'CRC8_WCDMA': 0x25,
}

CATALOGUE_KEYS = list(CRC8_CATALOGUE)
CATALOGUE_PARAMS = list(CRC8_CATALOGUE.values())


def test_catalogue_has_the_ten_standard_algorithms():
    assert list(CRC8_CATALOGUE) == list(EXPECTED_CHECK_VALUES)


@pytest.mark.parametrize('key, expected', EXPECTED_CHECK_VALUES.items())
def test_checksum_matches_check_value(key, expected):
    params = lookup(key)
    assert params.check == expected
    assert checksum(CHECK_DATA, make_table(params)) == expected


@pytest.mark.parametrize('params', CATALOGUE_PARAMS, ids=CATALOGUE_KEYS)
def test_check_params(params):
    assert check_params(params)


def test_check_params_detects_wrong_check_value():
    params = lookup('CRC8')._replace(check=0x00)
    assert not check_params(params)


def test_catalogue_values():
    assert lookup('CRC8_MAXIM') == Params(
        poly=0x31, init=0x00, refin=True, refout=True, xorout=0x00,
        check=0xA1, name='CRC-8/MAXIM')
    assert lookup('CRC8_I_CODE') == Params(
        poly=0x1D, init=0xFD, refin=False, refout=False, xorout=0x00,
        check=0x7E, name='CRC-8/I-CODE')
    assert lookup('CRC8_ITU').xorout == 0x55


def test_lookup_miss():
    assert lookup('NONEXISTENT') is None
    assert lookup('') is None
    assert create_checksum_fn('NONEXISTENT') is None


def test_lookup_by_name_and_alias():
    maxim = CRC8_CATALOGUE['CRC8_MAXIM']
    assert lookup('crc8_maxim') is maxim
    assert lookup('CRC-8/MAXIM') is maxim
    assert lookup('CRC-8/MAXIM-DOW') is maxim
    assert lookup('dow-crc') is maxim
    assert lookup('CRC-8/SMBUS') is CRC8_CATALOGUE['CRC8']
    assert lookup('CRC-8/TECH-3250') is CRC8_CATALOGUE['CRC8_EBU']


def test_params_are_immutable():
    params = lookup('CRC8')
    with pytest.raises(AttributeError):
        params.poly = 0x31
    table = make_table(params)
    with pytest.raises(AttributeError):
        table.params = lookup('CRC8_MAXIM')
    with pytest.raises(TypeError):
        table.entries[0] = 1


def test_reverse_bits():
    assert reverse_bits(0x01) == 0x80
    assert reverse_bits(0x31) == 0x8C
    assert reverse_bits(0b110, 3) == 0b011
    assert all(reversed_int8_bits[reversed_int8_bits[i]] == i for i in range(256))


def test_make_table():
    table = make_table(lookup('CRC8'))
    assert len(table.entries) == 256
    assert table.entries[0] == 0x00
    assert table.entries[1] == 0x07
    assert table.entries[0x80] == 0x89
    assert all(0 <= v <= 0xff for v in table.entries)


@pytest.mark.parametrize('params', CATALOGUE_PARAMS, ids=CATALOGUE_KEYS)
def test_make_table_is_deterministic(params):
    table = make_table(params)
    assert make_table(params) == table
    assert table.entries[1] == params.poly


def test_table_depends_only_on_poly():
    rohc = lookup('CRC8_ROHC')
    other = Params(poly=rohc.poly, init=0x12, refin=False, refout=False,
                   xorout=0x34, check=0x56, name='OTHER')
    assert make_table(rohc).entries == make_table(other).entries
    assert make_table(lookup('CRC8')).entries == make_table(rohc).entries


def test_make_table_rejects_values_over_8_bits():
    with pytest.raises(AssertionError):
        make_table(Params(0x107, 0, False, False, 0, 0, 'BAD'))


def test_init():
    assert init(make_table(lookup('CRC8_ROHC'))) == 0xFF
    assert init(make_table(lookup('CRC8'))) == 0x00


@pytest.mark.parametrize('params', CATALOGUE_PARAMS, ids=CATALOGUE_KEYS)
@pytest.mark.parametrize('split', [0, 1, 4, 9])
def test_update_in_chunks(params, split):
    table = make_table(params)
    a, b = CHECK_DATA[:split], CHECK_DATA[split:]
    chunked = update(update(init(table), a, table), b, table)
    assert chunked == update(init(table), a + b, table)


@pytest.mark.parametrize('params', CATALOGUE_PARAMS, ids=CATALOGUE_KEYS)
def test_empty_input(params):
    table = make_table(params)
    assert checksum(b'', table) == complete(init(table), table)


def test_empty_input_values():
    assert checksum(b'', make_table(lookup('CRC8'))) == 0x00
    assert checksum(b'', make_table(lookup('CRC8_ITU'))) == 0x55
    assert checksum(b'', make_table(lookup('CRC8_ROHC'))) == 0xFF


def test_update_accepts_byte_sequences():
    table = make_table(lookup('CRC8_DARC'))
    expected = update(0, CHECK_DATA, table)
    assert update(0, bytearray(CHECK_DATA), table) == expected
    assert update(0, memoryview(CHECK_DATA), table) == expected
    assert update(0, list(CHECK_DATA), table) == expected


def test_complete_residue_skips_xorout():
    table = make_table(lookup('CRC8_ITU'))
    crc = update(init(table), CHECK_DATA, table)
    assert complete(crc, table) == 0xA1
    assert complete(crc, table, residue=True) == 0xA1 ^ 0x55


def test_complete_reflects_output():
    table = make_table(lookup('CRC8_MAXIM'))
    assert complete(0x01, table) == 0x80
    assert complete(0x01, table, residue=True) == 0x80


def test_create_checksum_fn():
    crc_fn = create_checksum_fn('CRC-8/ROHC')
    assert crc_fn(CHECK_DATA) == 0xD0
    assert crc_fn.table.params is lookup('CRC8_ROHC')

    crc = crc_fn(b'1234', interim=True)
    crc = crc_fn(b'', crc, interim=True)
    assert crc_fn(b'56789', crc) == 0xD0


def test_create_checksum_fn_residue():
    crc_fn = create_checksum_fn('CRC8_ITU')
    assert crc_fn(CHECK_DATA, residue=True) == 0xF4
