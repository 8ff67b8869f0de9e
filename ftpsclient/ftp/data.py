"""Passive data connections for the FTPS client.

DataChannelNegotiator asks the server for a passive endpoint and
connects to it; DataStream carries exactly one listing or file
transfer over that connection.
"""

import io
import logging
import socket
import ssl
import time
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

from ftpsclient.ftp.context import OperationContext, ensure_context
from ftpsclient.ftp.control import ControlChannel
from ftpsclient.ftp.exceptions import (
    FTPConnectionError,
    FTPNetworkError,
    FTPProtocolError,
    FTPTimeoutError,
    FTPTLSError,
    error_for_reply,
)
from ftpsclient.ftp.reply import Reply, parse_epsv_port, parse_pasv_endpoint

logger = logging.getLogger("ftpsclient.data")


# Block size for data transfers (8KB)
BLOCK_SIZE = 8192

# Upper bound for the TLS close_notify exchange after a transfer
TLS_SHUTDOWN_TIMEOUT = 10.0


@dataclass(frozen=True)
class DataEndpoint:
    """Host and port of a passive data connection (single use)."""
    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class StreamState(Enum):
    """Lifecycle of a data stream."""
    READY = "ready"
    TRANSFERRING = "transferring"
    FINISHED = "finished"
    CLOSED = "closed"


class DataStream:
    """
    Byte stream bound to exactly one transfer.

    When the control channel is encrypted, the TLS handshake happens on
    first use, after the server has accepted the transfer command.
    """

    def __init__(
        self,
        sock: socket.socket,
        endpoint: DataEndpoint,
        timeout: float = 30,
        ssl_context: Optional[ssl.SSLContext] = None,
        server_name: Optional[str] = None,
        tls_session: Optional[ssl.SSLSession] = None
    ):
        """
        Initialize the stream.

        Args:
            sock: Connected data socket
            endpoint: Endpoint the socket is connected to
            timeout: Idle timeout in seconds
            ssl_context: Context for protecting the connection (None for plaintext)
            server_name: Server name for certificate checks
            tls_session: Control channel session to resume
        """
        self._sock = sock
        self._endpoint = endpoint
        self._timeout = timeout
        self._ssl_context = ssl_context
        self._server_name = server_name
        self._tls_session = tls_session
        self._state = StreamState.READY
        self._bytes_transferred = 0

    @property
    def endpoint(self) -> DataEndpoint:
        return self._endpoint

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is StreamState.CLOSED

    @property
    def is_encrypted(self) -> bool:
        return isinstance(self._sock, ssl.SSLSocket)

    @property
    def bytes_transferred(self) -> int:
        """Bytes moved so far by this stream."""
        return self._bytes_transferred

    def _begin(self, operation: str, context: OperationContext) -> None:
        if self._state is StreamState.CLOSED:
            raise FTPProtocolError(f"{operation}: data connection to {self._endpoint} is closed")
        if self._state is not StreamState.READY:
            raise FTPProtocolError(
                f"{operation}: data connection to {self._endpoint} was already used; "
                "each transfer needs a new one"
            )
        self._state = StreamState.TRANSFERRING
        context.check(operation)
        if self._ssl_context is not None:
            self._secure(context)

    def _secure(self, context: OperationContext) -> None:
        timeout = context.socket_timeout(self._timeout)
        self._sock.settimeout(timeout)
        try:
            self._sock = self._ssl_context.wrap_socket(
                self._sock,
                server_hostname=self._server_name,
                session=self._tls_session,
            )
        except ssl.CertificateError as e:
            raise FTPTLSError(f"Data connection certificate for {self._server_name} rejected", e)
        except ssl.SSLError as e:
            raise FTPTLSError(f"TLS handshake on data connection {self._endpoint} failed", e)
        except socket.timeout:
            raise FTPTimeoutError("Data connection TLS handshake", timeout)
        except OSError as e:
            raise FTPNetworkError(f"Data connection {self._endpoint} lost during TLS handshake", e)

        if self._tls_session is not None and not self._sock.session_reused:
            logger.debug(f"TLS session not resumed on data connection {self._endpoint}")

    def copy_to(self, sink: BinaryIO, context: Optional[OperationContext] = None) -> int:
        """
        Read the whole stream into a binary sink.

        Args:
            sink: Object with a write(bytes) method
            context: Optional deadline/cancellation

        Returns:
            Number of bytes read

        Raises:
            FTPCancelledError: If cancelled mid-transfer
            FTPTimeoutError: If the deadline or idle timeout elapses
            FTPNetworkError: If the connection fails
        """
        context = ensure_context(context)
        self._begin("Download", context)

        last_activity = time.monotonic()
        while True:
            context.check("Download")
            self._sock.settimeout(context.poll_timeout())
            try:
                chunk = self._sock.recv(BLOCK_SIZE)
            except socket.timeout:
                if time.monotonic() - last_activity >= self._timeout:
                    raise FTPTimeoutError("Data transfer", self._timeout)
                continue
            except OSError as e:
                raise FTPNetworkError(
                    f"Data connection {self._endpoint} failed after "
                    f"{self._bytes_transferred} bytes", e
                )

            if not chunk:
                break
            last_activity = time.monotonic()
            sink.write(chunk)
            self._bytes_transferred += len(chunk)

        self._state = StreamState.FINISHED
        return self._bytes_transferred

    def read_all(self, context: Optional[OperationContext] = None) -> bytes:
        """Read the whole stream and return its bytes."""
        buffer = io.BytesIO()
        self.copy_to(buffer, context)
        return buffer.getvalue()

    def copy_from(self, source: BinaryIO, context: Optional[OperationContext] = None) -> int:
        """
        Write everything from a binary source into the stream.

        Args:
            source: Object with a read(size) method returning bytes
            context: Optional deadline/cancellation

        Returns:
            Number of bytes written

        Raises:
            TypeError: If the source yields text instead of bytes
            FTPCancelledError: If cancelled mid-transfer
            FTPTimeoutError: If a write blocks past the deadline
            FTPNetworkError: If the connection fails
        """
        context = ensure_context(context)
        self._begin("Upload", context)

        while True:
            context.check("Upload")
            block = source.read(BLOCK_SIZE)
            if not block:
                break
            if isinstance(block, str):
                raise TypeError("Upload source must be opened in binary mode")

            self._send_block(block, context)
            self._bytes_transferred += len(block)

        self._state = StreamState.FINISHED
        return self._bytes_transferred

    def _send_block(self, block: bytes, context: OperationContext) -> None:
        # Short sends so a stalled peer cannot hide a cancel or deadline
        view = memoryview(block)
        offset = 0
        last_activity = time.monotonic()
        while offset < len(view):
            context.check("Upload")
            self._sock.settimeout(context.poll_timeout())
            try:
                sent = self._sock.send(view[offset:])
            except socket.timeout:
                if time.monotonic() - last_activity >= self._timeout:
                    raise FTPTimeoutError("Data transfer", self._timeout)
                continue
            except OSError as e:
                raise FTPNetworkError(
                    f"Data connection {self._endpoint} failed after "
                    f"{self._bytes_transferred + offset} bytes", e
                )
            if sent:
                offset += sent
                last_activity = time.monotonic()

    def close(self) -> None:
        """
        Close the connection.

        A finished TLS transfer is shut down with close_notify so the
        server can tell a complete upload from a truncated one.
        """
        if self._state is StreamState.CLOSED:
            return

        sock = self._sock
        if self._state is StreamState.FINISHED and isinstance(sock, ssl.SSLSocket):
            try:
                sock.settimeout(min(self._timeout, TLS_SHUTDOWN_TIMEOUT))
                sock = sock.unwrap()
            except (OSError, ValueError) as e:
                logger.debug(f"TLS shutdown on data connection {self._endpoint} failed: {e}")
        self._release(sock)

    def abort(self) -> None:
        """Drop the connection immediately."""
        if self._state is StreamState.CLOSED:
            return
        self._release(self._sock)

    def _release(self, sock: socket.socket) -> None:
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Closing data socket failed: {e}")
        self._state = StreamState.CLOSED
        logger.debug(
            f"Data connection {self._endpoint} closed "
            f"({self._bytes_transferred} bytes transferred)"
        )

    def __enter__(self) -> "DataStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()


class DataChannelNegotiator:
    """Opens passive data connections for a control channel."""

    def __init__(self, control: ControlChannel):
        """
        Initialize the negotiator.

        Args:
            control: Connected, authenticated control channel
        """
        self._control = control

    def open_passive(self, context: Optional[OperationContext] = None) -> DataStream:
        """
        Negotiate a passive endpoint and connect to it.

        Args:
            context: Optional deadline/cancellation

        Returns:
            DataStream for one transfer

        Raises:
            FTPReplyError: If the server refuses passive mode
            FTPProtocolError: If the endpoint cannot be parsed
            FTPNetworkError: If the data connection cannot be opened
        """
        context = ensure_context(context)
        context.check("Passive connection")
        endpoint = self.request_endpoint(context)
        return self.connect(endpoint, context)

    def request_endpoint(self, context: Optional[OperationContext] = None) -> DataEndpoint:
        """Send EPSV/PASV, falling back to the other one on a 5xx."""
        options = self._control.options
        if options.prefer_extended_passive or self._control.is_ipv6:
            commands = ("EPSV", "PASV")
        else:
            commands = ("PASV", "EPSV")

        for i, verb in enumerate(commands, start=1):
            reply = self._control.command(verb, context=context)
            if reply.is_success:
                return self._endpoint_from_reply(verb, reply)
            if i == len(commands) or not reply.is_permanent_failure:
                raise error_for_reply(verb, reply)
            logger.debug(f"{verb} rejected ({reply}), trying {commands[i]}")

    def _endpoint_from_reply(self, verb: str, reply: Reply) -> DataEndpoint:
        peer = self._control.peer_host
        if verb == "EPSV":
            return DataEndpoint(peer, parse_epsv_port(reply.message))

        host, port = parse_pasv_endpoint(reply.message)
        if not self._control.options.trust_server_pasv_address and host != peer:
            logger.debug(f"Ignoring PASV address {host}, using control peer {peer}")
            host = peer
        return DataEndpoint(host, port)

    def connect(
        self,
        endpoint: DataEndpoint,
        context: Optional[OperationContext] = None
    ) -> DataStream:
        """Open the TCP connection to a negotiated endpoint."""
        context = ensure_context(context)
        options = self._control.options
        timeout = context.socket_timeout(options.timeout)

        try:
            sock = socket.create_connection((endpoint.host, endpoint.port), timeout=timeout)
        except socket.timeout:
            raise FTPTimeoutError(f"Data connection to {endpoint}", timeout)
        except OSError as e:
            raise FTPConnectionError(endpoint.host, endpoint.port, e)

        logger.debug(f"Data connection opened to {endpoint}")
        encrypted = self._control.is_encrypted
        return DataStream(
            sock,
            endpoint,
            timeout=options.timeout,
            ssl_context=self._control.ssl_context if encrypted else None,
            server_name=self._control.server_name,
            tls_session=self._control.tls_session,
        )
