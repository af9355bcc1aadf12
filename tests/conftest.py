import logging
import os
import struct

import pytest


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.WARNING)


def make_chunk(tag, payload):
    '''Encode a chunk as it appears in the file, pad byte included.'''
    chunk = tag + struct.pack('>I', len(payload)) + payload
    if len(payload) & 1:
        chunk += b'\x00'
    return chunk


def make_form(form_type, body):
    return make_chunk(b'FORM', form_type + body)


def make_index(entries, count=None, length=None):
    '''entries are (usage, number, start) with usage as 4 bytes.'''
    payload = struct.pack('>I', len(entries) if count is None else count)
    payload += b''.join(usage + struct.pack('>II', number, start) for usage, number, start in entries)

    if length is None:
        return make_chunk(b'RIdx', payload)

    return b'RIdx' + struct.pack('>I', length) + payload


def make_envelope(content, form_type=b'IFRS'):
    content = form_type + content
    return b'FORM' + struct.pack('>I', len(content)) + content


class BlorbBuilder(object):
    '''Assemble a blorb in memory: the chunks follow the index in the order
    they are added and the index entries point at them.'''

    def __init__(self):
        self.chunks = []  # (usage, number, encoded chunk)

    def add(self, usage, number, tag, payload):
        return self.add_encoded(usage, number, make_chunk(tag, payload))

    def add_encoded(self, usage, number, chunk):
        self.chunks.append((usage, number, chunk))
        return self

    def add_unindexed(self, tag, payload):
        return self.add_encoded(None, None, make_chunk(tag, payload))

    def starts(self):
        '''Absolute offsets of the added chunks.'''
        indexed = [_ for _ in self.chunks if _[0] is not None]
        # envelope + index header + count + entries
        offset = 12 + 8 + 4 + 12 * len(indexed)

        result = []
        for _, _, chunk in self.chunks:
            result.append(offset)
            offset += len(chunk)

        return result

    def build(self):
        entries = [
            (usage, number, start)
            for (usage, number, _), start in zip(self.chunks, self.starts())
            if usage is not None
        ]
        body = b''.join(chunk for _, _, chunk in self.chunks)

        return make_envelope(make_index(entries) + body)


@pytest.fixture
def builder():
    return BlorbBuilder()
