"""Tests for merging and decoding chunk sets."""

import base64
import zlib

import pytest

from common.types import ChunkSetKey
from reassembly.exceptions import DecodeError, InflateError, MissingChunkError
from reassembly.reconstructor import Reconstructor, decode_payload


class TestDecodePayload:
    """Test base64 decoding and optional inflate."""

    def test_plain_payload(self):
        assert decode_payload(base64.b64encode(b'hello').decode(), 'none') == b'hello'

    def test_deflate_payload(self):
        encoded = base64.b64encode(zlib.compress(b'hello' * 100)).decode()
        assert decode_payload(encoded, 'deflate') == b'hello' * 100

    def test_unknown_compression_passes_through(self):
        compressed = zlib.compress(b'hello')
        encoded = base64.b64encode(compressed).decode()
        assert decode_payload(encoded, 'gzip') == compressed

    def test_whitespace_is_ignored(self):
        assert decode_payload('aGVs\nbG8=\r\n', 'none') == b'hello'

    def test_malformed_base64(self):
        with pytest.raises(DecodeError):
            decode_payload('not*base64!', 'none')

    @pytest.mark.parametrize('encoded,expected', [
        ('aGVsbG8', b'hello'),
        ('eyJ4IjoxfQ', b'{"x":1}'),
    ])
    def test_missing_padding_is_restored(self, encoded, expected):
        assert decode_payload(encoded, 'none') == expected

    def test_impossible_length(self):
        with pytest.raises(DecodeError):
            decode_payload('aGVsb', 'none')

    def test_invalid_character_with_missing_padding(self):
        with pytest.raises(DecodeError):
            decode_payload('aGVs*G8', 'none')

    def test_malformed_deflate_stream(self):
        encoded = base64.b64encode(b'definitely not zlib').decode()
        with pytest.raises(InflateError):
            decode_payload(encoded, 'deflate')


class TestReconstructor:
    """Test ordered merge from the store."""

    def test_merges_text_before_decoding(self, store, split_payload):
        data = b'{"x":1, "payload": "' + b'z' * 50 + b'"}'
        key = ChunkSetKey('dev1', 'm1', 4)
        fragments = split_payload(data, 4)
        for part in (4, 2, 1, 3):
            store.write_part(key, part, fragments[part - 1])

        assert Reconstructor(store).reconstruct(key, 'none') == data

    def test_fragments_need_not_align_to_base64_quanta(self, store):
        key = ChunkSetKey('dev1', 'm1', 2)
        store.write_part(key, 1, 'eyJ4Ijo')
        store.write_part(key, 2, 'xfQ==')

        assert Reconstructor(store).reconstruct(key, 'none') == b'{"x":1}'

    def test_deflate_set(self, store, split_payload):
        data = bytes(range(256)) * 20
        key = ChunkSetKey('dev1', 'm1', 3)
        for index, fragment in enumerate(split_payload(data, 3, deflate=True), start=1):
            store.write_part(key, index, fragment)

        assert Reconstructor(store).reconstruct(key, 'deflate') == data

    def test_missing_part(self, store):
        key = ChunkSetKey('dev1', 'm1', 3)
        store.write_part(key, 0, 'YQ==')
        store.write_part(key, 1, 'YQ==')
        store.write_part(key, 2, 'YQ==')

        with pytest.raises(MissingChunkError, match='part 3 of 3'):
            Reconstructor(store).reconstruct(key, 'none')
