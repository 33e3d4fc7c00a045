"""Shared pytest fixtures for all tests."""

import base64
import zlib

import pytest

from reassembly.chunk_store import ChunkStore
from reassembly.config import ReassemblyConfig
from reassembly.handler import ChunkProcessor


@pytest.fixture
def config(tmp_path):
    """
    Create a config with every storage area under a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        ReassemblyConfig rooted at tmp_path / 'files'
    """
    return ReassemblyConfig.for_base_dir(tmp_path / 'files', cleanup_retry_delay=0)


@pytest.fixture
def store(config):
    """
    Create a chunk store with its directories in place.
    """
    chunk_store = ChunkStore(config.temp_dir, config.claims_dir)
    chunk_store.ensure_directories()
    return chunk_store


@pytest.fixture
def processor(config):
    """
    Create a processor that never sleeps between cleanup attempts.
    """
    return ChunkProcessor(config, sleep=lambda seconds: None)


@pytest.fixture
def make_body():
    """
    Factory for inbound chunk bodies.

    Returns:
        Callable building a body dict; pass a property as None to drop it
    """
    def _make(
        part=1,
        max_part=1,
        chunk='',
        device_id='dev1',
        message_id='m1',
        filepath='a/b/report.json',
        compression='none',
    ):
        props = {
            'id': message_id,
            'filepath': filepath,
            'part': part,
            'maxPart': max_part,
            'compression': compression,
        }
        props = {k: v for k, v in props.items() if v is not None}
        body = {
            'deviceId': device_id,
            'messageProperties': props,
            'telemetry': {'contentChunk': chunk},
        }
        if device_id is None:
            del body['deviceId']
        return body
    return _make


@pytest.fixture
def split_payload():
    """
    Factory encoding bytes and splitting the base64 text into N fragments.

    Returns:
        Callable (data, parts, deflate=False) -> list of text fragments
    """
    def _split(data: bytes, parts: int, deflate: bool = False):
        if deflate:
            data = zlib.compress(data)
        text = base64.b64encode(data).decode('ascii')
        size = -(-len(text) // parts)
        return [text[i * size:(i + 1) * size] for i in range(parts)]
    return _split
