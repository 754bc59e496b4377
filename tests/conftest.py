import io
import logging
import os
import struct

import pytest


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


def _make_chunk(tag, payload=b''):
    return struct.pack('<II', tag, len(payload)) + payload


def _make_container(type_id, *children):
    return _make_chunk(type_id | 0x80000000, b''.join(children))


class TrickleIO(io.BytesIO):
    '''Gives back at most one byte for each read().'''

    def read(self, size=-1):
        return super().read(1 if size != 0 else 0)


class CountingIO(io.BytesIO):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        return super().read(size)


@pytest.fixture
def make_chunk():
    return _make_chunk


@pytest.fixture
def make_container():
    return _make_container


@pytest.fixture
def trickle_io():
    return TrickleIO


@pytest.fixture
def counting_io():
    return CountingIO
