"""Byte-stream transports the framing layer reads from and writes to.

A transport only needs two primitives: write every byte of a buffer, and
read *up to* ``n`` bytes (an empty result meaning end of stream).  The
framing code never assumes a read returns a whole packet.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Protocol

from .errors import QueryTimeout

log = logging.getLogger(__name__)


class SyncTransport(Protocol):
    def read(self, n: int) -> bytes: ...

    def write(self, data: bytes) -> None: ...


class AsyncTransport(Protocol):
    async def read(self, n: int) -> bytes: ...

    async def write(self, data: bytes) -> None: ...


# =====================================================================
# Blocking socket
# =====================================================================


class SocketTransport:
    """Blocking TCP transport around a connected socket."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    @classmethod
    def connect(cls, host: str, port: int, timeout: float = 5.0) -> SocketTransport:
        """Open a TCP connection to *host*:*port*.

        Raises :class:`QueryTimeout` if the connection is not established in
        time; other connection failures propagate as :class:`OSError`.
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except socket.timeout as exc:
            raise QueryTimeout(f"Connecting to {host}:{port} timed out after {timeout}s") from exc
        log.debug("Connected to %s:%d", host, port)
        return cls(sock)

    def read(self, n: int) -> bytes:
        try:
            return self._sock.recv(n)
        except socket.timeout as exc:
            raise QueryTimeout("Timed out waiting for data") from exc

    def write(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except socket.timeout as exc:
            raise QueryTimeout("Timed out sending data") from exc

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> SocketTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# =====================================================================
# asyncio streams
# =====================================================================


class StreamTransport:
    """asyncio transport around a ``StreamReader``/``StreamWriter`` pair."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        timeout: float | None = None,
    ):
        self._reader = reader
        self._writer = writer
        self.timeout = timeout

    @classmethod
    async def open(cls, host: str, port: int, timeout: float = 5.0) -> StreamTransport:
        """Open a TCP connection to *host*:*port*.

        *timeout* bounds the connect and every later read or write.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise QueryTimeout(f"Connecting to {host}:{port} timed out after {timeout}s") from exc
        log.debug("Connected to %s:%d", host, port)
        return cls(reader, writer, timeout)

    async def read(self, n: int) -> bytes:
        try:
            return await asyncio.wait_for(self._reader.read(n), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise QueryTimeout("Timed out waiting for data") from exc

    async def write(self, data: bytes) -> None:
        self._writer.write(data)
        try:
            await asyncio.wait_for(self._writer.drain(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise QueryTimeout("Timed out sending data") from exc

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            log.debug("Error while closing connection: %s", exc)

    async def __aenter__(self) -> StreamTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
