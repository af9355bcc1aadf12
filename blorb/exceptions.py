class BlorbException(Exception):
    '''Base class for the errors raised while reading a blorb.

    The attribute "chain" lists the names of the fields that were being
    unpacked when the error happened, innermost first: every Chunk the
    exception crosses appends the name of its failing field.
    '''

    def __init__(self, *args, chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(*args)

    def __str__(self):
        msg = super().__str__()
        if self.chain:
            msg = '%s (field \'%s\')' % (msg, '.'.join(reversed(self.chain)))
        return msg


class UnpackException(BlorbException):
    pass


class MagicException(BlorbException):
    pass


class MalformedEnvelope(MagicException):
    '''The file doesn't start with a FORM header.'''
    pass


class UnsupportedContainer(MalformedEnvelope):
    '''The outer FORM is some other IFF container, not a blorb.'''
    pass


class MissingIndex(BlorbException):
    '''The first chunk of the blorb is absent or is not the resource index.'''
    pass


class IndexLengthMismatch(UnpackException):
    pass


class UnrecognizedUsage(UnpackException):
    '''An index entry has a usage outside Pict/Snd /Data/Exec.

    Unknown chunks can be skipped, an unknown usage can't: the entry
    accounting of the whole index depends on it.'''
    pass


class TruncatedChunk(UnpackException):
    pass


class ResourceNotFound(BlorbException, LookupError):
    pass


class BlorbIOError(BlorbException):
    '''The underlying byte source failed; the original error is kept
    in "error" (and as __cause__).'''

    def __init__(self, error, chain=None):
        self.error = error
        super().__init__(str(error), chain=chain)
