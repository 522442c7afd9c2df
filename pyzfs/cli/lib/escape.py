"""
Octal escaping of path names as printed by `zfs diff`.

`zfs diff` prints a file name a byte at a time. Any byte outside printable
7-bit ASCII (control characters below space, DEL and every 8-bit byte) is
shown as a backslash followed by its 3-digit octal value. Space and backslash
are escaped the same way so that a path is always a single field.
"""

from pyzfs.cli.lib.exceptions import FormatError

OCTAL_DIGITS = frozenset(b"01234567")
BACKSLASH = ord("\\")


def _is_printable(byte: int) -> bool:
    return 0x20 < byte < 0x7F and byte != BACKSLASH


def escape(data: bytes) -> str:
    """
    Escape raw path bytes the way `zfs diff` does.

    Args:
        data: Raw path bytes

    Returns:
        ASCII string with every non-printable byte written as `\\NNN`
    """
    return "".join(chr(b) if _is_printable(b) else f"\\{b:03o}" for b in data)


def unescape_bytes(text: str) -> bytes:
    """
    Decode `\\NNN` octal escapes into raw bytes.

    Args:
        text: Escaped path as read from command output

    Returns:
        Raw path bytes

    Raises:
        FormatError: If an escape is truncated or not a valid octal byte
    """
    raw = text.encode("utf-8", "surrogateescape")
    buf = bytearray()
    i = 0
    length = len(raw)
    while i < length:
        if raw[i] != BACKSLASH:
            buf.append(raw[i])
            i += 1
            continue

        if length < i + 4:
            raise FormatError("invalid octal code: too short")
        code = raw[i + 1 : i + 4]
        try:
            if not all(c in OCTAL_DIGITS for c in code):
                raise ValueError(f"invalid syntax: {code.decode('ascii', 'replace')!r}")
            value = int(code, 8)
            if value > 0xFF:
                raise ValueError(f"value out of range: {code.decode('ascii')!r}")
        except ValueError as e:
            raise FormatError(f"invalid octal code: {e}") from e
        buf.append(value)
        i += 4
    return bytes(buf)


def unescape(text: str) -> str:
    """
    Decode `\\NNN` octal escapes into a path string.

    Bytes that are not valid UTF-8 are kept as surrogates, so
    `os.fsencode()` gives back the exact on-disk name.
    """
    return unescape_bytes(text).decode("utf-8", "surrogateescape")
