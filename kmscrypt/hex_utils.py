import string

HEX_DIGITS = frozenset(string.hexdigits)


class InvalidEncoding(ValueError):
    pass


def bytes_to_hex(data: bytes) -> str:
    """Return the lowercase hex encoding of `data`, two digits per byte."""
    return bytes(data).hex()


def hex_to_bytes(hex_string: str) -> bytes:
    if len(hex_string) % 2:
        raise InvalidEncoding(
            f"Invalid hex string: odd length ({len(hex_string)} characters)."
        )

    bad = [c for c in hex_string if c not in HEX_DIGITS]
    if bad:
        raise InvalidEncoding(f"Invalid hex string: unexpected character {bad[0]!r}.")

    return bytes(int(hex_string[i : i + 2], 16) for i in range(0, len(hex_string), 2))
