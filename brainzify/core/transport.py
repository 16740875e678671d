"""TLS socket transport to the submission endpoint, with forcible cancellation of blocking calls."""
import logging
import socket
import ssl
import threading
from typing import Optional

from brainzify.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0
RESPONSE_MAX_BYTES = 1023

# SSLSocket raises ValueError once shutdown() from another thread has dropped its TLS state
_SOCKET_ERRORS = (OSError, ValueError)


class TLSConnection:
    """One connection to the endpoint. Every socket error surfaces as TransportError.

    The connection is registered with its token from before the TCP connect,
    so abort() can cut the connect, the handshake or a read.
    """

    def __init__(self, sock: socket.socket, token: Optional["CancellationToken"] = None) -> None:
        self._sock = sock
        self._token = token
        self._lock = threading.Lock()
        self._aborted = False
        self._closed = False

    @property
    def aborted(self) -> bool:
        with self._lock:
            return self._aborted

    def connect(self, address) -> None:
        if self.aborted:
            raise TransportError("Connection cancelled")
        try:
            self._sock.connect(address)
        except _SOCKET_ERRORS as e:
            raise TransportError(f"Connect failed: {e}") from e

    def start_tls(self, context: ssl.SSLContext, server_hostname: str) -> None:
        """Wrap the connected socket and run the handshake as an abortable step."""
        try:
            wrapped = context.wrap_socket(
                self._sock,
                server_hostname=server_hostname,
                do_handshake_on_connect=False,
            )
        except _SOCKET_ERRORS as e:
            raise TransportError(f"TLS setup failed: {e}") from e
        with self._lock:
            self._sock = wrapped
            aborted = self._aborted
        if aborted:
            raise TransportError("Connection cancelled")
        try:
            wrapped.do_handshake()
        except _SOCKET_ERRORS as e:
            raise TransportError(f"TLS handshake failed: {e}") from e

    def write(self, data: bytes) -> int:
        try:
            self._sock.sendall(data)
        except _SOCKET_ERRORS as e:
            raise TransportError(f"Write failed: {e}") from e
        return len(data)

    def read(self, size: int = RESPONSE_MAX_BYTES) -> bytes:
        """Read up to size bytes; an empty result means the peer closed."""
        try:
            return self._sock.recv(size)
        except _SOCKET_ERRORS as e:
            raise TransportError(f"Read failed: {e}") from e

    def abort(self) -> None:
        """Shut the socket down from another thread so a blocked call returns."""
        with self._lock:
            self._aborted = True
            sock = self._sock
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except _SOCKET_ERRORS:
            # Not connected yet or already closed
            pass

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._token is not None:
            self._token.unregister(self)
        self._sock.close()

    def __enter__(self) -> "TLSConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CancellationToken:
    """Kill switch for the worker's network I/O.

    kill() aborts the registered connection and makes any later register() fail,
    so shutdown never waits for a slow server.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._killed = False
        self._connection = None

    @property
    def killed(self) -> bool:
        with self._lock:
            return self._killed

    def register(self, connection) -> None:
        with self._lock:
            if self._killed:
                raise TransportError("Connection cancelled")
            self._connection = connection

    def unregister(self, connection) -> None:
        with self._lock:
            if self._connection is connection:
                self._connection = None

    def kill(self) -> None:
        with self._lock:
            self._killed = True
            connection = self._connection
        if connection is not None:
            logger.debug("Interrupting in-flight submission")
            connection.abort()


class TLSTransport:
    """Opens TLS client connections with a shared SSL context."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._timeout = timeout
        self._context = context or ssl.create_default_context()

    def open(self, host: str, port: int, token: Optional[CancellationToken] = None) -> TLSConnection:
        """Connect to the first reachable address of host and complete the TLS handshake."""
        if token is not None and token.killed:
            raise TransportError("Connection cancelled")
        try:
            addresses = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except OSError as e:
            raise TransportError(f"Could not resolve {host}: {e}") from e

        last_error: Optional[TransportError] = None
        for family, socktype, proto, _, address in addresses:
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as e:
                last_error = TransportError(str(e))
                continue
            sock.settimeout(self._timeout)
            connection = TLSConnection(sock, token)
            try:
                if token is not None:
                    token.register(connection)
                connection.connect(address)
                connection.start_tls(self._context, host)
            except TransportError as e:
                connection.close()
                if token is not None and token.killed:
                    raise TransportError("Connection cancelled") from e
                last_error = e
                continue
            return connection
        raise TransportError(f"Could not connect to {host}:{port}: {last_error}") from last_error
