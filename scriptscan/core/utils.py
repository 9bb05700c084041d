from __future__ import annotations
import chardet  # type: ignore
from pathlib import Path
from typing import Optional

BINARY_BYTES = bytes(range(0, 32)) + b"\x7f"
LUA_BYTECODE_MAGIC = b"\x1bLua"

def is_likely_binary(
    data: bytes, control_threshold: float = 0.30, high_bit_threshold: float = 0.60
) -> bool:
    if not data:
        return False
    total = len(data)
    if 0 in data:
        return True
    if data.startswith(LUA_BYTECODE_MAGIC):
        return True
    control = sum(1 for b in data if b in BINARY_BYTES and b not in (9, 10, 13))
    if (control / total) > control_threshold:
        return True
    high = sum(1 for b in data if b >= 0x80)
    if (high / total) > high_bit_threshold:
        return True
    return False

def decode_bytes(data: bytes) -> Optional[str]:
    """Decode script bytes: UTF-8 first, then whatever chardet guesses."""
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    try:
        return data.decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        pass
    enc = chardet.detect(data).get("encoding")
    if not enc:
        return None
    try:
        return data.decode(enc, errors="strict")
    except (LookupError, UnicodeDecodeError):
        return None

def read_text_safely(path: Path, max_bytes: int = 20_000_000) -> Optional[str]:
    """Return the decoded text of ``path`` or None for binary/undecodable/unreadable files."""
    try:
        with path.open("rb") as f:
            head = f.read(min(4096, max_bytes))
            if is_likely_binary(head):
                return None
            rest = f.read(max_bytes - len(head))
            data = head + rest
    except OSError:
        return None
    if is_likely_binary(data):
        return None
    return decode_bytes(data)
