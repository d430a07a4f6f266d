# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
RIFF (Resource Interchange File Format) utility functions.
Provides a nestable chunk writer with length backpatching and helpers to read chunk headers.
"""

import struct
from contextlib import contextmanager
from typing import BinaryIO, Callable, Iterator, Optional, Union


def read_chunk_header(f: BinaryIO) -> tuple[bytes, int]:
    """
    Reads a RIFF chunk header (ID and size) from a file.

    Args:
        f: The file object to read from.

    Returns:
        A tuple containing the chunk ID (bytes) and chunk size (int).
    """
    chunk_id = f.read(4)
    if len(chunk_id) < 4:
        raise EOFError("Unexpected end of file while reading chunk ID.")

    chunk_size_bytes = f.read(4)
    if len(chunk_size_bytes) < 4:
        raise EOFError("Unexpected end of file while reading chunk size.")

    chunk_size = struct.unpack("<I", chunk_size_bytes)[0]
    return chunk_id, chunk_size


def make_zstr(text: str, encoding: str = "ascii") -> bytes:
    """
    Creates a zero-terminated string compliant with the RIFF specification.
    Adjusts the total byte count to be even by adding one or two null terminators.

    Characters that cannot be encoded are replaced with "?".

    Args:
        text: The string to convert.
        encoding: The encoding (default: "ascii").

    Returns:
        The zero-terminated string as a bytes object.
    """
    encoded = text.encode(encoding, errors="replace")

    # If string length is odd, add one terminator (total even)
    # If string length is even, add two terminators (total even)
    if len(encoded) % 2 == 1:
        return encoded + b"\x00"
    else:
        return encoded + b"\x00\x00"


def _fourcc(tag: Union[str, bytes]) -> bytes:
    if isinstance(tag, str):
        if len(tag) != 4:
            raise ValueError(f"Chunk ID must be 4 characters long, got {tag!r}.")
        tag = tag.encode("ascii")
    if len(tag) != 4:
        raise ValueError(f"Chunk ID must be 4 bytes long, got {tag!r}.")
    return bytes(tag)


class ChunkWriter:
    """
    Writes little-endian binary data with a monotonically advancing cursor.

    Chunks are opened with `emit()` or the `chunk()` context manager. The length field of
    each chunk is reserved when the chunk opens and backpatched when its payload is complete,
    so chunks can be nested to any depth without knowing their size in advance.
    """

    def __init__(self, capacity: Optional[int] = None):
        """
        Initializes the writer.

        Args:
            capacity: Optional maximum number of bytes. Writing past it raises OverflowError.
                      When omitted the buffer grows as needed.
        """
        self.capacity = capacity
        self._buffer = bytearray()

    def tell(self) -> int:
        """
        Returns the current write position.
        """
        return len(self._buffer)

    def getvalue(self) -> bytes:
        """
        Returns everything written so far.
        """
        return bytes(self._buffer)

    def write(self, data: bytes) -> None:
        if self.capacity is not None and len(self._buffer) + len(data) > self.capacity:
            raise OverflowError(
                f"Chunk writer capacity of {self.capacity} bytes exceeded "
                f"(position {len(self._buffer)}, writing {len(data)} bytes)."
            )
        self._buffer += data

    def pack(self, fmt: str, *values) -> None:
        """
        Packs values with a little-endian struct format and writes them.
        """
        self.write(struct.pack("<" + fmt, *values))

    def write_fourcc(self, tag: Union[str, bytes]) -> None:
        self.write(_fourcc(tag))

    def write_u8(self, value: int) -> None:
        self.pack("B", value)

    def write_i8(self, value: int) -> None:
        self.pack("b", value)

    def write_u16(self, value: int) -> None:
        self.pack("H", value)

    def write_i16(self, value: int) -> None:
        self.pack("h", value)

    def write_u32(self, value: int) -> None:
        self.pack("I", value)

    def write_fixed_string(self, text: str, length: int) -> None:
        """
        Writes an ASCII string truncated or null-padded to exactly `length` bytes.
        """
        encoded = text.encode("ascii", errors="replace")[:length]
        self.write(encoded.ljust(length, b"\x00"))

    def write_zstr(self, text: str) -> None:
        self.write(make_zstr(text))

    @contextmanager
    def chunk(self, tag: Union[str, bytes]) -> Iterator["ChunkWriter"]:
        """
        Opens a chunk: writes the tag and a placeholder length, yields for the payload,
        then pads the payload to an even size and backpatches the length.

        Args:
            tag: The 4-character chunk ID.
        """
        self.write_fourcc(tag)
        size_pos = self.tell()
        self.write_u32(0)
        payload_start = self.tell()

        yield self

        size = self.tell() - payload_start

        # Word alignment
        if size % 2:
            self.write(b"\x00")
            size += 1

        struct.pack_into("<I", self._buffer, size_pos, size)

    def emit(self, tag: Union[str, bytes], producer: Callable[["ChunkWriter"], None]) -> None:
        """
        Writes a complete chunk whose payload is produced by `producer(writer)`.

        The producer writes through this same writer and may open nested chunks.

        Args:
            tag: The 4-character chunk ID.
            producer: Callable writing the chunk payload.
        """
        with self.chunk(tag):
            producer(self)
