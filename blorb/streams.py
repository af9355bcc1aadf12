import io
import logging
from contextlib import contextmanager

from .exceptions import BlorbIOError, TruncatedChunk


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around path/bytes/file objects to
    uniform their properties: we need exact reads with a meaningful
    error, absolute seeks and a way to come back to a saved position.

    A file opened from a path belongs to the stream and is closed with it,
    a file object passed by the caller is left alone.'''
    def __init__(self, obj):
        self._owned = False
        self.history = []
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    def __getattr__(self, name):
        if name == 'obj':
            raise AttributeError(name)
        return getattr(self.obj, name)

    def __del__(self):
        self.close()

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.__dict__.get('obj'))

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        try:
            self.obj = open(self.obj, 'rb')
        except OSError as e:
            raise BlorbIOError(e) from e
        self._owned = True

    init_PosixPath = init_str
    init_WindowsPath = init_str

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    init_bytearray = init_bytes
    init_memoryview = init_bytes

    def init_file(self):
        '''Anything else must behave like a binary file'''
        for method in ('read', 'seek', 'tell'):
            if not callable(getattr(self.obj, method, None)):
                raise TypeError('\'%s\' is not a readable and seekable object' % self.obj.__class__.__name__)

    def read(self, size):
        try:
            return self.obj.read(size)
        except OSError as e:
            raise BlorbIOError(e) from e

    def read_exact(self, size):
        '''Read exactly size bytes or fail: a partial read is never returned.'''
        offset = self.tell()
        data = self.read(size)

        if len(data) != size:
            raise TruncatedChunk(
                'expected %d bytes at offset 0x%x but only %d are available' % (size, offset, len(data)))

        return data

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        try:
            self.obj.seek(offset)
        except OSError as e:
            raise BlorbIOError(e) from e

    def tell(self):
        try:
            return self.obj.tell()
        except OSError as e:
            raise BlorbIOError(e) from e

    def save(self):
        self.history.append(self.tell())

    def restore(self):
        self.seek(self.history.pop())

    @contextmanager
    def bookmark(self):
        '''Whatever is read inside the block, the position is restored at its end.'''
        self.save()
        try:
            yield self
        finally:
            self.restore()

    def close(self):
        obj = self.__dict__.get('obj')
        if self.__dict__.get('_owned') and obj is not None:
            obj.close()
