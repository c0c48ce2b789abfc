"""A fixed-capacity buffer that packet layers are appended to in turn."""

from __future__ import annotations


class PacketBuffer:
    """Fixed-size byte area; ``push`` reserves space at the tail, ``pop`` gives it back."""

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._buf = bytearray(capacity)
        self._view = memoryview(self._buf)
        self._tail = 0

    @property
    def capacity(self) -> int:
        return len(self._buf)

    @property
    def data_len(self) -> int:
        return self._tail

    @property
    def data(self) -> bytes:
        """The bytes pushed so far."""
        return bytes(self._view[: self._tail])

    def __len__(self) -> int:
        return self._tail

    def push(self, length: int) -> memoryview:
        """Reserve ``length`` bytes at the tail and return a writable view of them."""
        if length < 0 or self.capacity - self._tail < length:
            raise ValueError(
                f"cannot push {length} bytes: {self.capacity - self._tail} free"
            )
        start = self._tail
        self._tail += length
        return self._view[start: self._tail]

    def pop(self, length: int) -> memoryview:
        """Release ``length`` bytes from the tail and return a view of them."""
        if length < 0 or self._tail < length:
            raise ValueError(f"cannot pop {length} bytes: {self._tail} in use")
        self._tail -= length
        return self._view[self._tail: self._tail + length]

    def reset(self) -> None:
        """Discard everything pushed."""
        self._tail = 0