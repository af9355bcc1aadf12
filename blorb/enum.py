from enum import Enum, Flag, auto


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()
    NETWORK       = auto()
    NATIVE        = auto()


class Compliant(Flag):
    '''How strictly the data must follow the format.

    A field with INHERIT asks its father when its own flags don't answer.'''
    NONE  = 0
    ENUM  = 1 << 0  # values outside an enum are fatal
    MAGIC = 1 << 1  # magic/identifier mismatches are fatal
    INHERIT = 1 << 2
