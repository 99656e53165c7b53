"""Descriptors of byte ranges inside a guest module's linear memory."""

from __future__ import annotations

import struct
from collections.abc import Buffer
from dataclasses import dataclass

U32_MAX = 0xFFFF_FFFF

_LAYOUT = struct.Struct("<II")
SIZE = _LAYOUT.size
"""Size in bytes of a descriptor in guest memory: pointer then length, little endian."""


class MemorySliceError(Exception):
    """A memory slice is invalid or does not fit the memory."""


def _check_bounds(memory_size: int, offset: int, length: int) -> None:
    if offset < 0 or offset + length > memory_size:
        raise MemorySliceError(
            f"range {offset}..{offset + length} is outside memory of {memory_size} bytes"
        )


@dataclass(frozen=True)
class MemorySlice:
    """A pointer into guest memory and the number of bytes it covers."""

    ptr: int
    len: int

    @classmethod
    def from_bytes(cls, data: Buffer) -> MemorySlice:
        """Decode the 8-byte descriptor layout."""
        raw = bytes(data)
        if len(raw) != SIZE:
            raise MemorySliceError(f"descriptor must be {SIZE} bytes, got {len(raw)}")
        ptr, length = _LAYOUT.unpack(raw)
        return cls(ptr, length)

    def __bytes__(self) -> bytes:
        return _LAYOUT.pack(self.ptr, self.len)

    @classmethod
    def from_memory(cls, memory: Buffer, ptr: int) -> MemorySlice:
        """Read and validate the descriptor stored at ``ptr``."""
        if not 0 <= ptr <= U32_MAX:
            raise MemorySliceError(f"pointer out of range: {ptr}")
        with memoryview(memory) as view:
            _check_bounds(view.nbytes, ptr, SIZE)
            raw = view.cast("B")[ptr:ptr + SIZE].tobytes()
        memory_slice = cls.from_bytes(raw)
        memory_slice._validate()
        return memory_slice

    def _validate(self) -> None:
        if self.ptr == 0:
            raise MemorySliceError("null pointer")
        if self.len > U32_MAX - self.ptr:
            raise MemorySliceError("slice extends past the 32-bit address space")

    def write(self, memory: Buffer, data: Buffer) -> None:
        """Copy ``data`` to the start of the slice; it must not exceed the slice."""
        payload = bytes(data)
        if len(payload) > self.len:
            raise MemorySliceError(
                f"data of {len(payload)} bytes does not fit slice of {self.len} bytes"
            )
        with memoryview(memory) as view:
            if view.readonly:
                raise MemorySliceError("memory is read-only")
            target = view.cast("B")
            _check_bounds(target.nbytes, self.ptr, len(payload))
            target[self.ptr:self.ptr + len(payload)] = payload

    def read(self, memory: Buffer, max_len: int) -> bytes:
        """The bytes of the slice, refused if it is longer than ``max_len``."""
        if self.len > max_len:
            raise MemorySliceError(f"slice of {self.len} bytes exceeds limit {max_len}")
        with memoryview(memory) as view:
            source = view.cast("B")
            _check_bounds(source.nbytes, self.ptr, self.len)
            return source[self.ptr:self.ptr + self.len].tobytes()