'''
# Blorb resource archive

IFF container, i.e. a "FORM" of type "IFRS", bundling the story file of an
interactive-fiction game together with its pictures, sounds and metadata.

The format is documented at <https://www.eblong.com/zarf/blorb/blorb.html>.

Every chunk is a 4-byte tag, a big-endian 32-bit length and "length" bytes
of payload followed by a pad byte when the length is odd. A chunk with tag
"FORM" is a nested IFF file: its payload starts with its own form type.

The first chunk is mandatory and is the resource index ("RIdx"): it tells
the offset of every picture, sound, data and executable resource.

This module only describes the chunks: reading them is up to the cursor.
'''
import logging
from enum import Enum

from .core import Chunk
from .enum import Compliant
from .exceptions import IndexLengthMismatch, MalformedEnvelope, ResourceNotFound, \
    UnpackException, UnrecognizedUsage, UnsupportedContainer
from .properties import Dependency, DeltaDependency, PropertyDescriptor, RatioDependency
from . import fields


logger = logging.getLogger(__name__)

FORM_ID = b'FORM'
BLORB_FORM_TYPE = b'IFRS'

# there is a single executable, whatever its number says
EXECUTABLE_NUMBER = 0


class ResourceUsage(Enum):
    PICTURE    = b'Pict'
    SOUND      = b'Snd '
    DATA       = b'Data'
    EXECUTABLE = b'Exec'


class BlorbWord(fields.StructField):
    '''Unsigned 32-bit big-endian integer, the only numeric type of the format'''

    def __init__(self, **kwargs):
        kwargs.setdefault('endianess', fields.Endianess.BIG_ENDIAN)
        super().__init__('I', **kwargs)


class UsageField(fields.StructField):
    '''Usage of an index entry: an unknown one is always fatal.'''

    def __init__(self, **kwargs):
        kwargs.setdefault('default', ResourceUsage.PICTURE)
        super().__init__('4s', enum=ResourceUsage, compliant=Compliant.ENUM, **kwargs)

    def _unpack_enum(self, value):
        try:
            return self.enum(value)
        except ValueError:
            raise UnrecognizedUsage(f'{value!r} is not a resource usage', chain=[])


class ChunkHeader(Chunk):
    tag    = fields.StringField(4)
    length = BlorbWord()


class FormHeader(ChunkHeader):
    '''Header of a nested IFF file: "length" counts also the form type.'''
    form_type = fields.StringField(4)


class BlorbHeader(Chunk):
    '''The envelope of the whole file: a mismatch is always fatal.'''
    tag       = fields.StringField(
        4, default=FORM_ID, is_magic=True, compliant=Compliant.MAGIC, magic_exception=MalformedEnvelope)
    length    = BlorbWord()
    form_type = fields.StringField(
        4, default=BLORB_FORM_TYPE, is_magic=True, compliant=Compliant.MAGIC, magic_exception=UnsupportedContainer)


class BlorbChunk(Chunk):
    '''Base class for all the decoded chunks: the header, the fields of the
    payload declared by the subclass and the eventual pad byte.

    The raw representation is exactly the bytes found in the file.'''
    tag     = fields.StringField(4)
    length  = BlorbWord()
    padding = fields.PaddingField(Dependency('.length'), Dependency('.payload_offset'))

    def get_ordered_fields_name(self):
        # the padding is declared here but comes after the payload of the subclasses
        names = [_ for _ in self._fields if _ != 'padding']
        return names + ['padding']

    def payload_offset(self):
        return self.length.offset + self.length.size


class FormChunk(BlorbChunk):
    form_type = fields.StringField(4)


class ResourceIndexEntry(Chunk):
    usage  = UsageField()
    number = BlorbWord()
    start  = BlorbWord()  # absolute offset of the chunk of the resource

    @property
    def key(self):
        return ResourceIndex.key(self.usage.value, self.number.value)


INDEX_ENTRY_SIZE = ResourceIndexEntry().size


class IndexCountField(BlorbWord):
    '''Number of entries in the index: it must agree with the declared
    length of the chunk before any entry is read.'''

    declared = PropertyDescriptor('declared', int)

    def __init__(self, declared, **kwargs):
        self.declared = declared
        super().__init__(**kwargs)

    def unpack(self, stream):
        super().unpack(stream)

        declared = self.declared
        expected = self.value * INDEX_ENTRY_SIZE + self.size
        if declared != expected:
            raise IndexLengthMismatch(
                f'index declares {self.value} entries ({expected} bytes) but its length is {declared}', chain=[])


class ResourceIndex(object):
    '''Where every resource of the blorb starts.

    Pictures, sounds and data have each their own numbering, the executable
    has a single slot: a second executable entry replaces the first one.'''

    def __init__(self, entries=()):
        self._entries = {}

        for entry in entries:
            self.add(entry)

    @staticmethod
    def key(usage, number):
        return (usage, EXECUTABLE_NUMBER if usage == ResourceUsage.EXECUTABLE else number)

    def add(self, entry):
        key = entry.key
        if entry.usage.value == ResourceUsage.EXECUTABLE and key in self._entries:
            logger.warning('more than one executable in the index, using the one at 0x%x', entry.start.value)

        self._entries[key] = entry

    def get(self, usage, number=EXECUTABLE_NUMBER):
        try:
            return self._entries[self.key(usage, number)]
        except KeyError:
            raise ResourceNotFound(f'no {usage.name.lower()} resource with number {number}') from None

    def numbers(self, usage):
        return sorted(number for _usage, number in self._entries if _usage == usage)

    @property
    def executable(self):
        return self._entries.get(self.key(ResourceUsage.EXECUTABLE, EXECUTABLE_NUMBER))

    def __contains__(self, key):
        usage, number = key
        return self.key(usage, number) in self._entries

    def __iter__(self):
        '''Entries in file order.'''
        return iter(sorted(self._entries.values(), key=lambda _: _.start.value))

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return '<%s(%d entries)>' % (self.__class__.__name__, len(self))


class ResourceIndexChunk(BlorbChunk):
    count   = IndexCountField(Dependency('.length'))
    entries = fields.ArrayField(ResourceIndexEntry(), n=Dependency('.count'))

    index = None

    def unpack(self, stream):
        super().unpack(stream)
        self.index = ResourceIndex(self.entries)


'''
Executable resources: the story file for one of the interpreters.
'''


class ExecutableChunk(BlorbChunk):
    code = fields.StringField(Dependency('.length'))


class ZCode(ExecutableChunk):
    '''Z-machine story file'''


class Glulx(ExecutableChunk):
    pass


class Tads2(ExecutableChunk):
    pass


class Tads3(ExecutableChunk):
    pass


class Hugo(ExecutableChunk):
    pass


class Alan(ExecutableChunk):
    pass


class Adrift(ExecutableChunk):
    pass


class Level9(ExecutableChunk):
    pass


class Agt(ExecutableChunk):
    pass


class MagneticScrolls(ExecutableChunk):
    pass


class AdvSys(ExecutableChunk):
    pass


class Exec(ExecutableChunk):
    '''Native executable, its platform is not part of the format.'''


'''
Pictures and sounds: the payload is the whole file in its own format.
'''


class PictureChunk(BlorbChunk):
    data = fields.StringField(Dependency('.length'))


class Png(PictureChunk):
    pass


class Jpeg(PictureChunk):
    pass


class Gif(PictureChunk):
    pass


class SoundChunk(BlorbChunk):
    data = fields.StringField(Dependency('.length'))


class Ogg(SoundChunk):
    pass


class Mod(SoundChunk):
    pass


class Song(SoundChunk):
    '''SONG format, a MOD with its samples stored as separate resources'''


class Wav(SoundChunk):
    pass


class Midi(SoundChunk):
    pass


class Mp3(SoundChunk):
    pass


class Aiff(FormChunk):
    '''AIFF sounds are stored as nested FORM chunks.'''
    body = fields.StringField(DeltaDependency(4, '.length'))

    @property
    def data(self):
        '''The sound as a standalone AIFF file.'''
        return self.tag.raw + self.length.raw + self.form_type.raw + self.body.value


'''
Data resources and metadata.
'''


class TextChunk(BlorbChunk):
    encoding = 'utf-8'

    data = fields.StringField(Dependency('.length'))

    @property
    def text(self):
        try:
            return self.data.value.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise UnpackException(f'chunk {self.tag.value!r} is not valid {self.encoding} text', chain=['data']) from e


class Text(TextChunk):
    pass


class Binary(BlorbChunk):
    data = fields.StringField(Dependency('.length'))


class Metadata(TextChunk):
    '''iFiction record: an XML document in UTF-8'''


class Author(TextChunk):
    encoding = 'latin-1'


class Copyright(TextChunk):
    encoding = 'latin-1'


class Annotation(TextChunk):
    encoding = 'latin-1'


class StoryName(TextChunk):
    encoding = 'utf-16-be'


class Frontispiece(BlorbChunk):
    '''The picture to use as cover art.'''
    number = BlorbWord()


class Rectangle(BlorbChunk):
    '''Placeholder for a picture that the interpreter draws by itself.'''
    width  = BlorbWord()
    height = BlorbWord()


class ReleaseNumber(BlorbChunk):
    number = fields.StructField('H', endianess=fields.Endianess.BIG_ENDIAN)


class LoopEntry(Chunk):
    number  = BlorbWord()
    repeats = BlorbWord()  # zero means forever


class Looping(BlorbChunk):
    '''How many times each sound is repeated when played.'''
    entries = fields.ArrayField(LoopEntry(), n=RatioDependency(LoopEntry().size, '.length'))


class AdaptivePalette(BlorbChunk):
    '''Pictures that take their palette from the last non-adaptive one.'''
    pictures = fields.ArrayField(BlorbWord(), n=RatioDependency(4, '.length'))


class ResolutionEntry(Chunk):
    number = BlorbWord()
    ratnum = BlorbWord()
    ratden = BlorbWord()
    minnum = BlorbWord()
    minden = BlorbWord()
    maxnum = BlorbWord()
    maxden = BlorbWord()


RESOLUTION_WINDOW_SIZE = 6 * 4


class Resolution(BlorbChunk):
    '''Standard window size and the scaling ratios of the pictures.'''
    px   = BlorbWord()
    py   = BlorbWord()
    minx = BlorbWord()
    miny = BlorbWord()
    maxx = BlorbWord()
    maxy = BlorbWord()
    entries = fields.ArrayField(
        ResolutionEntry(),
        n=RatioDependency(ResolutionEntry().size, '.length', delta=RESOLUTION_WINDOW_SIZE))


class ResourceDescription(Chunk):
    usage       = UsageField()
    number      = BlorbWord()
    text_length = BlorbWord()
    text        = fields.StringField(Dependency('.text_length'))


class ResourceDescriptions(BlorbChunk):
    '''Textual description of resources, for the visually impaired.'''
    count   = BlorbWord()
    entries = fields.ArrayField(ResourceDescription(), n=Dependency('.count'))


class UnknownChunk(BlorbChunk):
    '''Chunk with a tag we don't know: readers are expected to skip
    them, so the payload is kept as it is.'''
    data = fields.StringField(Dependency('.length'))


class UnknownForm(FormChunk):
    data = fields.StringField(DeltaDependency(4, '.length'))


'''
Classification tables: what is not here is an UnknownChunk (or an UnknownForm).
'''

tag2chunk = {
    b'RIdx': ResourceIndexChunk,
    b'IFmd': Metadata,
    b'Fspc': Frontispiece,
    b'Rect': Rectangle,
    # executables
    b'ZCOD': ZCode,
    b'GLUL': Glulx,
    b'TAD2': Tads2,
    b'TAD3': Tads3,
    b'HUGO': Hugo,
    b'ALAN': Alan,
    b'ADRI': Adrift,
    b'LEVE': Level9,
    b'AGT ': Agt,
    b'MAGS': MagneticScrolls,
    b'ADVS': AdvSys,
    b'EXEC': Exec,
    # pictures
    b'PNG ': Png,
    b'JPEG': Jpeg,
    b'GIF ': Gif,
    # sounds
    b'OGGV': Ogg,
    b'MOD ': Mod,
    b'SONG': Song,
    b'WAV ': Wav,
    b'MIDI': Midi,
    b'MP3 ': Mp3,
    # data
    b'TEXT': Text,
    b'BINA': Binary,
    # optional chunks
    b'AUTH': Author,
    b'(c) ': Copyright,
    b'ANNO': Annotation,
    b'SNam': StoryName,
    b'RelN': ReleaseNumber,
    b'Loop': Looping,
    b'APal': AdaptivePalette,
    b'Reso': Resolution,
    b'RDes': ResourceDescriptions,
}

form2chunk = {
    b'AIFF': Aiff,
}


def chunk_class_for(header):
    '''Class decoding the chunk described by header (a ChunkHeader, or a
    FormHeader for nested forms).'''
    if header.tag.value == FORM_ID:
        form_type = header.form_type.value
        if form_type not in form2chunk:
            logger.warning('unknown form type %r', form_type)
        return form2chunk.get(form_type, UnknownForm)

    tag = header.tag.value
    if tag not in tag2chunk:
        logger.warning('unknown chunk %r', tag)

    return tag2chunk.get(tag, UnknownChunk)
