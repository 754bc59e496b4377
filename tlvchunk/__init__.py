"""
# tlvchunk: chunked TLV containers for humans.

A chunked file is a sequence of chunks, each one composed by a type tag, the
length of the payload and the payload itself. When the most significant bit
of the tag is set the payload is a sequence of chunks on its own (a container),
otherwise it's opaque data (a leaf) whose layout depends on the type.

Three layers are involved in the decoding

 1. readers (streams.py): random access to a contiguous range of the source;
    slicing a range gives a new range and never copies the data.

 2. framing (core.py): a ChunkReader walks a range front to back and gives
    back one chunk at a time; the payload of a container is framed by a new
    ChunkReader, at any depth.

 3. decoding (records.py, decoder.py): a Container maps type ids to its slots,
    a Record describes the layout of a leaf payload via fields; the decoder
    fills the slots pulling the chunks, skipping the ones it doesn't know.

"""
