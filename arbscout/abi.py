"""Ethereum ABI encoding and decoding, addresses and Keccak-256 hashing."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from Crypto.Hash import keccak as _keccak

ZERO_ADDRESS = "0x" + "00" * 20

_WORD = 32
_HEX_ADDRESS = re.compile(r"(?:0x|0X)?([0-9a-fA-F]{40})")
_INTEGER_TYPE = re.compile(r"(u?int)([0-9]*)")
_FIXED_BYTES_TYPE = re.compile(r"bytes([0-9]+)")
_DIMENSION = re.compile(r"[0-9]+")
_FUNCTION_NAME = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


class AbiError(ValueError):
    """Raised for malformed types, values or encoded data."""


def keccak256(data: bytes) -> bytes:
    """The 32-byte Keccak-256 digest of ``data``."""
    digest = _keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


def parse_address(text: str) -> str:
    """Validate a hex address and return it as lower-case ``0x`` text."""
    if not isinstance(text, str):
        raise AbiError(f"address must be text, got {type(text).__name__}")
    match = _HEX_ADDRESS.fullmatch(text)
    if match is None:
        raise AbiError(f"invalid address: {text!r}")
    return "0x" + match.group(1).lower()


def _address_bytes(address: Any) -> bytes:
    if isinstance(address, (bytes, bytearray, memoryview)):
        raw = bytes(address)
        if len(raw) != 20:
            raise AbiError(f"address must be 20 bytes, got {len(raw)}")
        return raw
    return bytes.fromhex(parse_address(address)[2:])


def format_address(address: Any) -> str:
    """Render an address with its EIP-55 mixed-case checksum."""
    hex_digits = _address_bytes(address).hex()
    digest = keccak256(hex_digits.encode("ascii")).hex()
    return "0x" + "".join(
        char.upper() if char.isalpha() and int(nibble, 16) >= 8 else char
        for char, nibble in zip(hex_digits, digest)
    )


@dataclass(frozen=True)
class _Type:
    kind: str
    size: int = 0
    components: tuple["_Type", ...] = ()
    item: "_Type | None" = None

    @property
    def dynamic(self) -> bool:
        if self.kind in ("bytes", "string"):
            return True
        if self.kind == "array":
            return self.size < 0 or self.item.dynamic
        if self.kind == "tuple":
            return any(component.dynamic for component in self.components)
        return False

    @property
    def head_size(self) -> int:
        if self.dynamic:
            return _WORD
        if self.kind == "tuple":
            return sum(component.head_size for component in self.components)
        if self.kind == "array":
            return self.size * self.item.head_size
        return _WORD

    @property
    def canonical(self) -> str:
        if self.kind in ("uint", "int"):
            return f"{self.kind}{self.size}"
        if self.kind == "fixedbytes":
            return f"bytes{self.size}"
        if self.kind == "tuple":
            return "(" + ",".join(c.canonical for c in self.components) + ")"
        if self.kind == "array":
            suffix = "[]" if self.size < 0 else f"[{self.size}]"
            return self.item.canonical + suffix
        return self.kind


def _split_top_level(body: str) -> list[str]:
    if not body.strip():
        return []
    parts: list[str] = []
    depth = 0
    start = 0
    for pos, char in enumerate(body):
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
            if depth < 0:
                raise AbiError(f"unbalanced brackets in {body!r}")
        elif char == "," and depth == 0:
            parts.append(body[start:pos])
            start = pos + 1
    if depth:
        raise AbiError(f"unbalanced brackets in {body!r}")
    parts.append(body[start:])
    return parts


def _parse_elementary(text: str) -> _Type:
    match = _INTEGER_TYPE.fullmatch(text)
    if match:
        bits = int(match.group(2)) if match.group(2) else 256
        if bits == 0 or bits > 256 or bits % 8:
            raise AbiError(f"invalid integer type: {text!r}")
        return _Type(match.group(1), bits)
    match = _FIXED_BYTES_TYPE.fullmatch(text)
    if match:
        length = int(match.group(1))
        if not 1 <= length <= 32:
            raise AbiError(f"invalid fixed bytes type: {text!r}")
        return _Type("fixedbytes", length)
    if text in ("address", "bool", "string", "bytes"):
        return _Type(text)
    raise AbiError(f"unsupported ABI type: {text!r}")


@lru_cache(maxsize=None)
def _parse_type(text: str) -> _Type:
    text = text.strip()
    if not text:
        raise AbiError("empty ABI type")
    if text.endswith("]"):
        start = text.rfind("[")
        if start <= 0:
            raise AbiError(f"invalid array type: {text!r}")
        item = _parse_type(text[:start])
        dimension = text[start + 1 : -1]
        if not dimension:
            return _Type("array", -1, item=item)
        if not _DIMENSION.fullmatch(dimension):
            raise AbiError(f"invalid array length in {text!r}")
        return _Type("array", int(dimension), item=item)
    if text.startswith("(") and text.endswith(")"):
        parts = _split_top_level(text[1:-1])
        return _Type("tuple", components=tuple(_parse_type(p) for p in parts))
    return _parse_elementary(text)


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AbiError(f"expected an integer, got {value!r}")
    return value


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str) and value.startswith("0x"):
        try:
            return bytes.fromhex(value[2:])
        except ValueError as exc:
            raise AbiError(f"invalid hex bytes: {value!r}") from exc
    raise AbiError(f"expected bytes, got {value!r}")


def _as_sequence(value: Any) -> list[Any]:
    if isinstance(value, (str, bytes, bytearray, memoryview)) or not isinstance(
        value, Iterable
    ):
        raise AbiError(f"expected a sequence, got {value!r}")
    return list(value)


def _padded(data: bytes) -> bytes:
    return data.ljust(-(-len(data) // _WORD) * _WORD, b"\0")


def _encode(kind_type: _Type, value: Any) -> bytes:
    kind = kind_type.kind
    if kind == "uint":
        number = _as_int(value)
        if not 0 <= number < 1 << kind_type.size:
            raise AbiError(f"{number} does not fit in {kind_type.canonical}")
        return number.to_bytes(_WORD, "big")
    if kind == "int":
        number = _as_int(value)
        limit = 1 << (kind_type.size - 1)
        if not -limit <= number < limit:
            raise AbiError(f"{number} does not fit in {kind_type.canonical}")
        return (number % (1 << 256)).to_bytes(_WORD, "big")
    if kind == "address":
        return _address_bytes(value).rjust(_WORD, b"\0")
    if kind == "bool":
        if not isinstance(value, bool):
            raise AbiError(f"expected a bool, got {value!r}")
        return int(value).to_bytes(_WORD, "big")
    if kind == "fixedbytes":
        data = _as_bytes(value)
        if len(data) != kind_type.size:
            raise AbiError(f"expected {kind_type.size} bytes, got {len(data)}")
        return data.ljust(_WORD, b"\0")
    if kind in ("bytes", "string"):
        if kind == "string":
            if not isinstance(value, str):
                raise AbiError(f"expected a string, got {value!r}")
            data = value.encode("utf-8")
        else:
            data = _as_bytes(value)
        return len(data).to_bytes(_WORD, "big") + _padded(data)
    if kind == "tuple":
        values = _as_sequence(value)
        if len(values) != len(kind_type.components):
            raise AbiError(
                f"{kind_type.canonical} needs {len(kind_type.components)} values, "
                f"got {len(values)}"
            )
        return _encode_sequence(kind_type.components, values)
    values = _as_sequence(value)
    if kind_type.size >= 0 and len(values) != kind_type.size:
        raise AbiError(f"{kind_type.canonical} needs {kind_type.size} items")
    body = _encode_sequence([kind_type.item] * len(values), values)
    if kind_type.size >= 0:
        return body
    return len(values).to_bytes(_WORD, "big") + body


def _encode_sequence(types: Sequence[_Type], values: Sequence[Any]) -> bytes:
    heads: list[bytes] = []
    tails: list[bytes] = []
    head_length = sum(t.head_size for t in types)
    tail_length = 0
    for kind_type, value in zip(types, values):
        encoded = _encode(kind_type, value)
        if kind_type.dynamic:
            heads.append((head_length + tail_length).to_bytes(_WORD, "big"))
            tails.append(encoded)
            tail_length += len(encoded)
        else:
            heads.append(encoded)
    return b"".join(heads) + b"".join(tails)


def _read_word(data: bytes, pos: int) -> int:
    if pos < 0 or pos + _WORD > len(data):
        raise AbiError("encoded data is too short")
    return int.from_bytes(data[pos : pos + _WORD], "big")


def _decode_at(kind_type: _Type, data: bytes, pos: int) -> Any:
    kind = kind_type.kind
    if kind == "uint":
        number = _read_word(data, pos)
        if number >> kind_type.size:
            raise AbiError(f"value out of range for {kind_type.canonical}")
        return number
    if kind == "int":
        number = _read_word(data, pos)
        if number >= 1 << 255:
            number -= 1 << 256
        limit = 1 << (kind_type.size - 1)
        if not -limit <= number < limit:
            raise AbiError(f"value out of range for {kind_type.canonical}")
        return number
    if kind == "address":
        number = _read_word(data, pos)
        if number >> 160:
            raise AbiError("address word has non-zero high bytes")
        return "0x" + number.to_bytes(20, "big").hex()
    if kind == "bool":
        number = _read_word(data, pos)
        if number not in (0, 1):
            raise AbiError(f"invalid bool word: {number}")
        return bool(number)
    if kind == "fixedbytes":
        _read_word(data, pos)
        chunk = data[pos : pos + _WORD]
        if any(chunk[kind_type.size :]):
            raise AbiError(f"{kind_type.canonical} has non-zero padding")
        return bytes(chunk[: kind_type.size])
    if kind in ("bytes", "string"):
        length = _read_word(data, pos)
        start = pos + _WORD
        if start + length > len(data):
            raise AbiError("encoded data is too short")
        raw = bytes(data[start : start + length])
        if kind == "bytes":
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AbiError("string is not valid UTF-8") from exc
    if kind == "tuple":
        return tuple(_decode_sequence(kind_type.components, data, pos))
    if kind_type.size < 0:
        length = _read_word(data, pos)
        start = pos + _WORD
    else:
        length = kind_type.size
        start = pos
    if length > len(data) or start + length * kind_type.item.head_size > len(data):
        raise AbiError("encoded data is too short")
    return _decode_sequence([kind_type.item] * length, data, start)


def _decode_sequence(types: Sequence[_Type], data: bytes, base: int) -> list[Any]:
    values: list[Any] = []
    pos = base
    for kind_type in types:
        if kind_type.dynamic:
            offset = _read_word(data, pos)
            values.append(_decode_at(kind_type, data, base + offset))
            pos += _WORD
        else:
            values.append(_decode_at(kind_type, data, pos))
            pos += kind_type.head_size
    return values


def encode_arguments(types: Iterable[str], values: Iterable[Any]) -> bytes:
    """ABI-encode ``values`` as a sequence of the given types."""
    parsed = [_parse_type(t) for t in types]
    values = list(values)
    if len(values) != len(parsed):
        raise AbiError(f"expected {len(parsed)} values, got {len(values)}")
    return _encode_sequence(parsed, values)


def decode_values(types: Iterable[str], data: bytes) -> tuple[Any, ...]:
    """Decode ABI data into Python values: ints, str addresses, bytes, tuples, lists."""
    parsed = [_parse_type(t) for t in types]
    return tuple(_decode_sequence(parsed, bytes(data), 0))


def _parse_signature(signature: str) -> tuple[str, list[_Type]]:
    text = signature.strip()
    open_paren = text.find("(")
    if open_paren <= 0 or not text.endswith(")"):
        raise AbiError(f"invalid function signature: {signature!r}")
    name = text[:open_paren].strip()
    if not _FUNCTION_NAME.fullmatch(name):
        raise AbiError(f"invalid function name: {name!r}")
    types = [_parse_type(p) for p in _split_top_level(text[open_paren + 1 : -1])]
    return name, types


def _selector(name: str, types: Sequence[_Type]) -> bytes:
    canonical = f"{name}({','.join(t.canonical for t in types)})"
    return keccak256(canonical.encode("ascii"))[:4]


def function_selector(signature: str) -> bytes:
    """The 4-byte selector of a function signature such as ``getPool(address,address,bool)``."""
    name, types = _parse_signature(signature)
    return _selector(name, types)


def encode_call(signature: str, *args: Any) -> bytes:
    """Calldata for calling ``signature`` with ``args``."""
    name, types = _parse_signature(signature)
    if len(args) != len(types):
        raise AbiError(f"{name} takes {len(types)} arguments, got {len(args)}")
    return _selector(name, types) + _encode_sequence(types, args)