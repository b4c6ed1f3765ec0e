from __future__ import annotations


FIELD_PRIME = 2**251 + 17 * 2**192 + 1
ADDRESS_HEX_DIGITS = 64


def felt_to_int(value: str | int) -> int:
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def felt_to_signed(value: str | int) -> int:
    number = felt_to_int(value)
    if number > FIELD_PRIME // 2:
        return number - FIELD_PRIME
    return number


def decode_short_string(value: str | int) -> str:
    number = felt_to_int(value)
    if number < 0 or number.bit_length() > 31 * 8:
        raise ValueError(f"Felt does not fit a short string: {value}")
    if number == 0:
        return ""
    raw = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return raw.decode("utf-8")


def normalize_address(address: str) -> str:
    body = address.strip().lower()
    if body.startswith("0x"):
        body = body[2:]
    if not body or len(body) > ADDRESS_HEX_DIGITS:
        raise ValueError(f"Invalid Starknet address: {address}")
    int(body, 16)
    return "0x" + body.rjust(ADDRESS_HEX_DIGITS, "0")


def truncate_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"
