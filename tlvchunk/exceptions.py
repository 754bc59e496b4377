class TLVChunkException(Exception):
    '''Base class to extend in order to throw exception in tlvchunk.

    The "chain" argument represents the layers (fields and slots) that caused the
    exception, from the innermost outwards: each layer appends its own name while
    re-raising. The other arguments locate the problem inside the source.
    '''

    def __init__(self, chain=None, offset=None, expected=None, available=None):
        self.chain = chain if chain is not None else []
        self.offset = offset
        self.expected = expected
        self.available = available
        super().__init__()

    @property
    def path(self):
        return '.'.join(reversed(self.chain))

    def rebase(self, delta):
        '''Move the offset from a relative position to the one of the outer layer.'''
        if self.offset is not None:
            self.offset += delta

    def __str__(self):
        msg = []
        if self.chain:
            msg.append(f'field \'{self.path}\'')
        if self.offset is not None:
            msg.append(f'offset 0x{self.offset:x}')
        if self.expected is not None:
            msg.append(f'expected {self.expected} bytes')
        if self.available is not None:
            msg.append(f'available {self.available} bytes')

        return ', '.join(msg)


class EndOfInputException(TLVChunkException):
    '''The underlying source is exhausted before filling the request.'''
    pass


class OutOfRangeException(TLVChunkException):
    pass


class TruncatedException(TLVChunkException):
    pass


class UnpackException(TLVChunkException):
    pass


class InvalidEncodingException(UnpackException):
    pass


class MagicException(TLVChunkException):
    pass


class ChunkKindException(TLVChunkException):
    '''A leaf chunk was found where a container was expected, or vice versa.'''
    pass


class UnknownTagException(TLVChunkException):
    '''This is useful when is not possible to let an unknown chunk
    slip through the decoding.'''
    pass


class SchemaException(Exception):
    '''The declaration of a record or container is malformed.'''
    pass
