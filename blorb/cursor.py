'''
Lazy access to the resources of a blorb.

Opening a blorb validates the envelope and reads the resource index, that
is the only chunk loaded up front; any other resource is read only when
asked for, seeking directly to it, so that a big story file or sound is
never read if not needed.

    with blorb.open('story.gblorb') as cursor:
        story = cursor.load_resource(ResourceUsage.EXECUTABLE)
        cover = cursor.load_resource(ResourceUsage.PICTURE, 1)

A cursor is not thread-safe: loading a resource moves the position of the
underlying stream. Use a lock or one cursor per thread.
'''
import logging

from .chunks import (
    EXECUTABLE_NUMBER,
    FORM_ID,
    BlorbHeader,
    ChunkHeader,
    FormHeader,
    ResourceIndexChunk,
    ResourceUsage,
    chunk_class_for,
)
from .enum import Compliant
from .exceptions import BlorbException, MalformedEnvelope, MissingIndex, TruncatedChunk
from .streams import Stream


logger = logging.getLogger(__name__)

# magic values and enums of the format are always enforced
COMPLIANT = Compliant.MAGIC | Compliant.ENUM


def peek_chunk_header(stream):
    '''Read the header of the chunk at the actual position without moving
    from it: a FormHeader for nested forms, a ChunkHeader otherwise.'''
    with stream.bookmark():
        header = ChunkHeader()
        header.unpack(stream)

        if header.tag.value == FORM_ID:
            stream.seek(header.offset)
            header = FormHeader()
            header.unpack(stream)

    return header


def read_chunk(stream, compliant=COMPLIANT):
    '''Decode the chunk starting at the actual position of the stream.

    At the end the stream is positioned just after the chunk, pad byte
    included.'''
    header = peek_chunk_header(stream)
    chunk_cls = chunk_class_for(header)

    logger.debug('chunk %r of %d bytes at offset 0x%x decoded as %s',
                 header.tag.value, header.length.value, header.offset, chunk_cls.__name__)

    chunk = chunk_cls(compliant=compliant)
    chunk.unpack(stream)

    return chunk


class BlorbCursor(object):
    '''Reader for a blorb, owning the stream it reads from.

    The source can be a path, the content as bytes or a binary file object
    supporting seek(); a file object passed in is not closed by the cursor.

    "length" is the length declared by the envelope (the file size minus
    the first 8 bytes) and "index" the ResourceIndex.'''

    def __init__(self, source):
        self.logger = logging.getLogger(__name__)
        self.stream = Stream(source)

        try:
            self.length = self._read_envelope()
            self.index = self._read_index()
        except BlorbException:
            self.close()
            raise

        self.logger.debug('blorb of %d bytes with %d resources', self.length, len(self.index))

    @classmethod
    def open(cls, source):
        return cls(source)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self):
        return '<%s(%r, %r)>' % (self.__class__.__name__, self.stream, self.index)

    def close(self):
        self.stream.close()

    def _read_envelope(self):
        self.stream.seek(0)
        header = BlorbHeader(compliant=COMPLIANT)

        try:
            header.unpack(self.stream)
        except TruncatedChunk as e:
            raise MalformedEnvelope('file too short to be a blorb', chain=e.chain) from e

        return header.length.value

    def _read_index(self):
        try:
            header = peek_chunk_header(self.stream)
        except TruncatedChunk as e:
            raise MissingIndex('no chunk after the blorb header') from e

        if chunk_class_for(header) is not ResourceIndexChunk:
            raise MissingIndex(f'the first chunk is {header.tag.value!r} instead of the resource index')

        return read_chunk(self.stream).index

    def load_resource(self, usage, number=EXECUTABLE_NUMBER):
        '''Read the resource identified by usage and number; the number is
        not needed for the executable since there is only one.

        Every call reads again from the stream: cache the result if needed.'''
        entry = self.index.get(ResourceUsage(usage), number)

        self.logger.debug('loading %s %d from offset 0x%x', entry.usage.value.name, number, entry.start.value)
        self.stream.seek(entry.start.value)

        return read_chunk(self.stream)

    def entries(self):
        return list(self.index)

    def resources(self):
        '''Iterate over (entry, chunk) for all the indexed resources, in file
        order; each chunk is read only when the iteration reaches it.'''
        for entry in self.index:
            yield entry, self.load_resource(entry.usage.value, entry.number.value)


def open(source):
    return BlorbCursor(source)
