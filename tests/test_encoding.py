import base64
import os

import pytest

from scan_function.encoding import CHUNK_SIZE, encode_base64_chunked, iter_chunks


@pytest.mark.parametrize("size", [0, 1, 32768, 32769, 1_000_000])
def test_chunked_encoding_matches_whole_buffer(size):
    """Chunked base64 must equal encoding the whole buffer at once"""
    data = os.urandom(size)

    assert encode_base64_chunked(data) == base64.b64encode(data).decode("ascii")


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 4, 5, 7, 64])
def test_chunk_size_does_not_change_output(chunk_size):
    data = bytes(range(256)) * 3 + b"tail"

    assert encode_base64_chunked(data, chunk_size) == base64.b64encode(data).decode("ascii")


def test_default_chunk_size_is_32k():
    assert CHUNK_SIZE == 32 * 1024


def test_iter_chunks_preserves_order_and_sizes():
    data = b"a" * CHUNK_SIZE + b"b" * CHUNK_SIZE + b"c"

    chunks = list(iter_chunks(data))

    assert [len(c) for c in chunks] == [CHUNK_SIZE, CHUNK_SIZE, 1]
    assert b"".join(c.tobytes() for c in chunks) == data


def test_iter_chunks_empty_buffer():
    assert list(iter_chunks(b"")) == []


def test_iter_chunks_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(iter_chunks(b"abc", 0))
