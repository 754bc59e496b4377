import logging


logger = logging.getLogger(__name__)


def bin_hash(name: str) -> int:
    '''The hash used by the engine to identify resources by name.'''
    value = 0xffffffff
    for c in name.encode('utf-8'):
        value = (value * 33 + c) & 0xffffffff

    return value


def get_entry_by_hash(metadata, texture_hash):
    '''Find the compressed entry for the texture with the given hash.'''
    if metadata.compressed_entries is None:
        raise ValueError('no compressed entries in the pack')

    entries = [_ for _ in metadata.compressed_entries.entries if _.hash == texture_hash]

    if len(entries) == 0:
        raise ValueError(f'no compressed entry with hash 0x{texture_hash:08x}')

    if len(entries) > 1:
        logger.warning(f'{len(entries)} compressed entries with hash 0x{texture_hash:08x}')

    return entries[0]


def get_missing_entries(metadata):
    '''Hashes listed by the pack without a compressed entry.'''
    hashes = metadata.hashes.hashes if metadata.hashes is not None else frozenset()
    entries = metadata.compressed_entries.entries if metadata.compressed_entries is not None else frozenset()

    return hashes - {_.hash for _ in entries}
