"""Status query orchestration: handshake, request, response.

:class:`StatusExchange` holds the state of one query and does no I/O.  The
blocking (:func:`query_status`, :func:`ping`) and asyncio
(:func:`query_status_async`, :func:`async_ping`) front-ends read the response
with the framing layer's read loops and hand the envelope to the exchange.
"""

from __future__ import annotations

import enum
import logging
import time

from .errors import StatusPingError
from .mc_protocol import (
    MAX_PACKET_LENGTH,
    Envelope,
    EnvelopeAssembler,
    FrameState,
    read_envelope,
    read_envelope_async,
)
from .packets import (
    DEFAULT_PORT,
    DEFAULT_PROTOCOL_VERSION,
    NEXT_STATE_STATUS,
    Handshake,
    StatusResponse,
    build_status_request,
)
from .status import ServerStatus, parse_status
from .transport import AsyncTransport, SocketTransport, StreamTransport, SyncTransport

log = logging.getLogger(__name__)


class ExchangeState(enum.IntEnum):
    """Lifecycle of one status exchange.  Transitions only move forward."""

    IDLE = 0
    HANDSHAKE_SENT = 1
    QUERY_SENT = 2
    AWAITING_ENVELOPE_LENGTH = 3
    AWAITING_ENVELOPE_BODY = 4
    AWAITING_JSON_LENGTH = 5
    AWAITING_JSON_BODY = 6
    DONE = 7
    FAILED = 8


class StatusExchange:
    """One handshake → status request → status response round trip.

    The response is read by :func:`~mc_status_ping.mc_protocol.read_envelope`
    (or its asyncio twin) into :attr:`assembler`; the exchange reports the
    assembler's progress as its own state and takes over once the envelope
    is complete.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        protocol_version: int = DEFAULT_PROTOCOL_VERSION,
        strict: bool = True,
        max_packet_length: int = MAX_PACKET_LENGTH,
    ):
        self.host = host
        self.port = port
        self.protocol_version = protocol_version
        self.strict = strict
        self.assembler = EnvelopeAssembler(max_packet_length)
        self._state = ExchangeState.IDLE
        self._json: str | None = None

    def __repr__(self) -> str:
        return f"StatusExchange({self.host}:{self.port}, state={self.state.name})"

    @property
    def state(self) -> ExchangeState:
        if (
            self._state is ExchangeState.AWAITING_ENVELOPE_LENGTH
            and self.assembler.state is not FrameState.AWAITING_LENGTH
        ):
            return ExchangeState.AWAITING_ENVELOPE_BODY
        return self._state

    def advance(self, new_state: ExchangeState) -> None:
        current = self.state
        if new_state < current:
            raise RuntimeError(
                f"Cannot move status exchange back from {current.name} to {new_state.name}"
            )
        if new_state != current:
            log.debug("%s:%d %s -> %s", self.host, self.port, current.name, new_state.name)
        self._state = new_state

    def fail(self) -> None:
        self._state = ExchangeState.FAILED

    # -- outgoing -------------------------------------------------------------

    def handshake(self) -> bytes:
        """Bytes of the handshake packet; marks the handshake as sent."""
        self._expect(ExchangeState.IDLE)
        data = Handshake(
            server_address=self.host,
            server_port=self.port,
            protocol_version=self.protocol_version,
            next_state=NEXT_STATE_STATUS,
        ).to_bytes()
        self.advance(ExchangeState.HANDSHAKE_SENT)
        return data

    def request(self) -> bytes:
        """Bytes of the status request; marks the query as sent."""
        self._expect(ExchangeState.HANDSHAKE_SENT)
        self.advance(ExchangeState.QUERY_SENT)
        self.advance(ExchangeState.AWAITING_ENVELOPE_LENGTH)
        return build_status_request()

    # -- incoming -------------------------------------------------------------

    @property
    def done(self) -> bool:
        return self.state is ExchangeState.DONE

    def receive(self, envelope: Envelope) -> str:
        """Extract the JSON document from the completed response envelope."""
        if self.state not in (
            ExchangeState.AWAITING_ENVELOPE_LENGTH,
            ExchangeState.AWAITING_ENVELOPE_BODY,
        ):
            raise RuntimeError(f"Not expecting a response in state {self.state.name}")
        try:
            self.advance(ExchangeState.AWAITING_JSON_LENGTH)
            response = StatusResponse.parse(envelope, strict=self.strict)
            self.advance(ExchangeState.AWAITING_JSON_BODY)
        except StatusPingError:
            self.fail()
            raise
        self._json = response.json
        self.advance(ExchangeState.DONE)
        return self._json

    @property
    def json(self) -> str:
        """The raw JSON status document, available once :attr:`done`."""
        if self._json is None:
            raise RuntimeError(f"No response yet (state {self.state.name})")
        return self._json

    def _expect(self, state: ExchangeState) -> None:
        if self.state is not state:
            raise RuntimeError(f"Expected state {state.name}, exchange is {self.state.name}")


# =====================================================================
# Front-ends
# =====================================================================


def query_status(
    transport: SyncTransport,
    host: str,
    port: int = DEFAULT_PORT,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    strict: bool = True,
    max_packet_length: int = MAX_PACKET_LENGTH,
) -> str:
    """Run a status exchange over a connected blocking transport.

    *host* and *port* are only written into the handshake; the transport
    must already be connected.  Returns the raw JSON document.
    """
    exchange = StatusExchange(host, port, protocol_version, strict, max_packet_length)
    transport.write(exchange.handshake())
    transport.write(exchange.request())
    try:
        envelope = read_envelope(transport, assembler=exchange.assembler)
    except StatusPingError:
        exchange.fail()
        raise
    return exchange.receive(envelope)


async def query_status_async(
    transport: AsyncTransport,
    host: str,
    port: int = DEFAULT_PORT,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    strict: bool = True,
    max_packet_length: int = MAX_PACKET_LENGTH,
) -> str:
    """asyncio counterpart of :func:`query_status`."""
    exchange = StatusExchange(host, port, protocol_version, strict, max_packet_length)
    await transport.write(exchange.handshake())
    await transport.write(exchange.request())
    try:
        envelope = await read_envelope_async(transport, assembler=exchange.assembler)
    except StatusPingError:
        exchange.fail()
        raise
    return exchange.receive(envelope)


def ping(
    host: str,
    port: int = DEFAULT_PORT,
    timeout: float = 5.0,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    strict: bool = True,
    max_packet_length: int = MAX_PACKET_LENGTH,
) -> ServerStatus:
    """Connect to *host*:*port*, query its status and close the connection.

    Raises
    ------
    QueryTimeout
        If connecting or any read/write exceeds *timeout* seconds.
    ProtocolError
        If the server's response is malformed.
    JsonDeserializationFailed
        If the status document cannot be deserialized.
    OSError
        If the connection cannot be established.
    """
    t_start = time.perf_counter()
    with SocketTransport.connect(host, port, timeout) as transport:
        text = query_status(transport, host, port, protocol_version, strict, max_packet_length)
    status = parse_status(text)
    log.debug(
        "Status of %s:%d received in %.3f seconds", host, port, time.perf_counter() - t_start
    )
    return status


async def async_ping(
    host: str,
    port: int = DEFAULT_PORT,
    timeout: float = 5.0,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    strict: bool = True,
    max_packet_length: int = MAX_PACKET_LENGTH,
) -> ServerStatus:
    """asyncio counterpart of :func:`ping`."""
    t_start = time.perf_counter()
    transport = await StreamTransport.open(host, port, timeout)
    async with transport:
        text = await query_status_async(
            transport, host, port, protocol_version, strict, max_packet_length
        )
    status = parse_status(text)
    log.debug(
        "Status of %s:%d received in %.3f seconds", host, port, time.perf_counter() - t_start
    )
    return status
