import base64
from typing import Iterator

CHUNK_SIZE = 0x8000  # 32 KiB


def iter_chunks(data: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[memoryview]:
    """Yield consecutive views of ``data``, each at most ``chunk_size`` bytes."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    view = memoryview(data)
    for start in range(0, len(view), chunk_size):
        yield view[start:start + chunk_size]


def encode_base64_chunked(data: bytes, chunk_size: int = CHUNK_SIZE) -> str:
    """Base64-encode ``data`` one chunk at a time.

    Bytes that do not fill a whole 3-byte group are carried into the next
    chunk, so the concatenated output equals ``base64.b64encode(data)``.
    """
    parts = []
    carry = b""
    for chunk in iter_chunks(data, chunk_size):
        block = carry + chunk.tobytes()
        usable = len(block) - len(block) % 3
        parts.append(base64.b64encode(block[:usable]).decode("ascii"))
        carry = block[usable:]
    if carry:
        parts.append(base64.b64encode(carry).decode("ascii"))
    return "".join(parts)
