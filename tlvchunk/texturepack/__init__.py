'''
# Texture pack metadata

Texture packs (TPK) are the containers of the textures used by the games of
the Need for Speed series built on the same engine (Carbon, World): the
metadata container describes the pack and lists the textures in it.

    PackMetadata (container 0x33310000)
      |- PackInfo                 0x33310001
      |- TextureHashes            0x33310002
      '- CompressedTextureEntries 0x33310003

Every other chunk found inside the container is ignored.
'''
from contextlib import closing

from tlvchunk import fields
from tlvchunk.decoder import iter_containers
from tlvchunk.enum import Compliant
from tlvchunk.records import Record, Container
from tlvchunk.texturepack.utils import bin_hash


class PackInfo(Record):
    '''General information about the pack: the payload is 124 bytes long but
    the last 24 bytes are not understood.'''
    tag = 0x33310001
    size = 124

    # TPK version
    #  9 - NFS: World
    #  8 - NFS: Carbon
    version     = fields.StructField('I', offset=0)
    # internal name for the TPK
    name        = fields.StringField(24, offset=4)
    # XML file the TPK was originally created from
    source_file = fields.StringField(64, offset=32)
    hash        = fields.StructField('I', offset=96)

    def validate(self):
        '''The pack hash is the bin hash of its name'''
        return self.hash == bin_hash(self.name)


class TextureHashes(Record):
    '''Hashes of the textures contained in the pack, one each 8 bytes.'''
    tag = 0x33310002

    hashes = fields.ArrayField(fields.StructField('I'), stride=8)


class CompressedTextureEntry(Record):
    hash              = fields.StructField('I')
    offset            = fields.StructField('I')
    compressed_size   = fields.StructField('I')
    uncompressed_size = fields.StructField('I')
    info_size         = fields.StructField('I')
    unknown_size      = fields.StructField('I')


class CompressedTextureEntries(Record):
    tag = 0x33310003

    entries = fields.ArrayField(CompressedTextureEntry, stride=36)


class PackMetadata(Container):
    tag = 0x33310000

    info               = fields.ChunkField(PackInfo)
    hashes             = fields.ChunkField(TextureHashes)
    compressed_entries = fields.ChunkField(CompressedTextureEntries)


def load_pack_metadata(source, compliant=Compliant.NONE) -> PackMetadata:
    '''Return the first metadata container found at the top level of the source.'''
    with closing(iter_containers(PackMetadata, source, compliant=compliant)) as containers:
        for metadata in containers:
            return metadata

    raise ValueError(f'no texture pack metadata in {source!r}')
