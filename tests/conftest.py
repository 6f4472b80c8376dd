"""Shared fixtures: in-memory transports that deliver data in fragments."""

from __future__ import annotations

import pytest


class FakeTransport:
    """Blocking transport that serves *data* in chunks of at most *chunk* bytes."""

    def __init__(self, data: bytes, chunk: int | None = None):
        self._data = data
        self._pos = 0
        self._chunk = chunk
        self.written = bytearray()
        self.reads = 0

    def read(self, n: int) -> bytes:
        self.reads += 1
        if self._chunk is not None:
            n = min(n, self._chunk)
        out = self._data[self._pos : self._pos + n]
        self._pos += len(out)
        return out

    def write(self, data: bytes) -> None:
        self.written += data

    @property
    def remaining(self) -> bytes:
        return self._data[self._pos :]


class FakeAsyncTransport(FakeTransport):
    """asyncio flavour of :class:`FakeTransport`."""

    async def read(self, n: int) -> bytes:  # type: ignore[override]
        return FakeTransport.read(self, n)

    async def write(self, data: bytes) -> None:  # type: ignore[override]
        FakeTransport.write(self, data)


@pytest.fixture
def status_json() -> str:
    return (
        '{"version": {"name": "Paper 1.21.3", "protocol": 768},'
        ' "players": {"max": 20, "online": 2, "sample": ['
        '{"name": "Alex", "id": "ec561538-f3fd-461d-aff5-086b22154bce"}]},'
        ' "description": {"text": "A ", "extra": [{"text": "Minecraft", "bold": true}, " Server"]},'
        ' "enforcesSecureChat": true}'
    )
