import pytest

from arbscout.abi import (
    ZERO_ADDRESS,
    AbiError,
    decode_values,
    encode_arguments,
    encode_call,
    format_address,
    function_selector,
    keccak256,
    parse_address,
)


@pytest.mark.parametrize(
    "text",
    [
        "not_an_address",
        "0x123",
        "0xzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzzz",
        "",
    ],
)
def test_invalid_addresses_fail_to_parse(text):
    with pytest.raises(AbiError):
        parse_address(text)


@pytest.mark.parametrize(
    "text",
    [
        "0x0000000000000000000000000000000000000000",
        "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "0x4200000000000000000000000000000000000006",
    ],
)
def test_valid_addresses_parse_to_lower_case(text):
    assert parse_address(text) == text.lower()


def test_address_prefix_is_optional():
    bare = "4200000000000000000000000000000000000006"
    assert parse_address(bare) == parse_address("0x" + bare)


def test_address_ordering_follows_numeric_value():
    zero = parse_address("0x" + "00" * 20)
    small = parse_address("0x" + "01" * 20)
    large = parse_address("0x" + "FF" * 20)
    assert zero < small < large
    assert zero == ZERO_ADDRESS


@pytest.mark.parametrize(
    "checksummed",
    [
        "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
        "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
        "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb",
    ],
)
def test_format_address_applies_eip55_checksum(checksummed):
    assert format_address(checksummed.lower()) == checksummed


def test_format_address_accepts_raw_bytes():
    assert format_address(bytes(20)) == ZERO_ADDRESS
    with pytest.raises(AbiError):
        format_address(bytes(19))


def test_keccak256_of_empty_input():
    assert keccak256(b"").hex() == (
        "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_function_selectors():
    assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"
    assert function_selector("balanceOf(address)").hex() == "70a08231"


def test_selector_normalises_spacing_and_aliases():
    assert function_selector("transfer( address , uint )") == function_selector(
        "transfer(address,uint256)"
    )


def test_encode_call_prefixes_selector():
    holder = "0x" + "ab" * 20
    data = encode_call("balanceOf(address)", holder)
    assert data[:4].hex() == "70a08231"
    assert len(data) == 36
    assert decode_values(["address"], data[4:]) == (holder,)


def test_encode_call_checks_argument_count():
    with pytest.raises(AbiError):
        encode_call("balanceOf(address)")


def test_uint_encoding_is_big_endian_word():
    assert encode_arguments(["uint256"], [1]) == bytes(31) + b"\x01"


def test_negative_int_is_twos_complement():
    encoded = encode_arguments(["int24"], [-1])
    assert encoded == b"\xff" * 32
    assert decode_values(["int24"], encoded) == (-1,)


def test_dynamic_bytes_layout():
    encoded = encode_arguments(["bytes"], [b"\x01\x02"])
    expected = "20".rjust(64, "0") + "02".rjust(64, "0") + "0102".ljust(64, "0")
    assert encoded.hex() == expected


@pytest.mark.parametrize(
    ("types", "values"),
    [
        (["uint256"], [2**256 - 1]),
        (["int24"], [-191740]),
        (["address", "bool"], ["0x" + "11" * 20, True]),
        (["bytes32"], [bytes(range(32))]),
        (["bytes", "string"], [b"\x01\x02\x03", "hello"]),
        (
            ["(address,address,uint24,int24,address)"],
            [(ZERO_ADDRESS, "0x" + "11" * 20, 3000, 60, ZERO_ADDRESS)],
        ),
        (["(bool,bytes)[]"], [[(True, b"a"), (False, b"")]]),
        (["uint256[2]", "string[]"], [[1, 2], ["a", "bc"]]),
        (["(address,bool,bytes)[]"], [[("0x" + "22" * 20, False, b"\x99" * 40)]]),
    ],
)
def test_round_trip(types, values):
    assert decode_values(types, encode_arguments(types, values)) == tuple(values)


@pytest.mark.parametrize(
    ("types", "values"),
    [
        (["uint8"], [256]),
        (["uint256"], [-1]),
        (["int8"], [128]),
        (["bool"], [1]),
        (["bytes32"], [b"\x00" * 31]),
        (["address"], ["0x123"]),
        (["uint256", "uint256"], [1]),
        (["uint256[2]"], [[1]]),
    ],
)
def test_encode_rejects_bad_values(types, values):
    with pytest.raises(AbiError):
        encode_arguments(types, values)


@pytest.mark.parametrize("type_name", ["uint7", "uint264", "bytes33", "foo", "(uint256"])
def test_unsupported_types(type_name):
    with pytest.raises(AbiError):
        encode_arguments([type_name], [0])


def test_decode_truncated_data():
    with pytest.raises(AbiError):
        decode_values(["uint256"], bytes(31))


def test_decode_rejects_out_of_range_words():
    with pytest.raises(AbiError):
        decode_values(["address"], b"\x01" + bytes(31))
    with pytest.raises(AbiError):
        decode_values(["bool"], bytes(31) + b"\x02")
    with pytest.raises(AbiError):
        decode_values(["uint8"], bytes(30) + b"\x01\x00")


def test_decode_rejects_huge_array_length():
    data = (32).to_bytes(32, "big") + (2**200).to_bytes(32, "big")
    with pytest.raises(AbiError):
        decode_values(["uint256[]"], data)