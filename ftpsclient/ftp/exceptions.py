"""FTP-specific exceptions for the FTPS client.

Custom exception hierarchy for FTP operations. Every error raised by
the client derives from FTPError and carries enough context (command
verb, reply code, server text) to diagnose a failure from the message.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ftpsclient.ftp.reply import Reply


class FTPError(Exception):
    """Base exception for all FTP-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class FTPNetworkError(FTPError):
    """Transport-level I/O failure, including mid-transfer disconnects."""


class FTPConnectionError(FTPNetworkError):
    """Failed to establish a connection."""

    def __init__(self, host: str, port: int, original_error: Exception = None):
        self.host = host
        self.port = port
        message = f"Failed to connect to {host}:{port}"
        super().__init__(message, original_error)


class FTPTimeoutError(FTPNetworkError):
    """FTP operation timed out."""

    def __init__(self, operation: str = "Operation", timeout: float = 30):
        self.timeout = timeout
        message = f"{operation} timed out after {timeout:g} seconds"
        super().__init__(message)


class FTPTLSError(FTPError):
    """TLS handshake, upgrade or certificate trust failure."""


class FTPProtocolError(FTPError):
    """Malformed or out-of-sequence reply, or misuse of a data stream."""


class FTPConfigurationError(FTPError):
    """Connection options are inconsistent or unsafe."""


class FTPAuthenticationError(FTPError):
    """FTP authentication (login) failed."""

    def __init__(
        self,
        username: str,
        reply: Optional["Reply"] = None,
        original_error: Exception = None
    ):
        self.username = username
        self.reply = reply
        message = f"Authentication failed for user '{username}'"
        if reply is not None:
            message = f"{message} ({reply.code} {reply.message})"
        super().__init__(message, original_error)


class FTPReplyError(FTPError):
    """Server answered a command with a well-formed failure reply."""

    def __init__(self, verb: str, reply: "Reply", message: Optional[str] = None):
        self.verb = verb
        self.reply = reply
        if message is None:
            message = f"{verb} failed: {reply.code} {reply.message}"
        super().__init__(message)

    @property
    def code(self) -> int:
        """Reply code reported by the server."""
        return self.reply.code


class FTPTransientError(FTPReplyError):
    """4xx reply: the caller may retry the whole operation."""


class FTPPermanentError(FTPReplyError):
    """5xx reply: retrying the same request will not help."""


class FTPDirectoryExistsError(FTPPermanentError):
    """MKD rejected because the directory is already present."""

    def __init__(self, path: str, reply: "Reply"):
        self.path = path
        message = f"Directory '{path}' already exists ({reply.code} {reply.message})"
        super().__init__("MKD", reply, message)


class FTPRenameError(FTPReplyError):
    """Rename failed; stage tells whether RNFR or RNTO was rejected."""

    def __init__(self, source: str, target: str, verb: str, reply: "Reply"):
        self.source = source
        self.target = target
        self.stage = verb
        message = (
            f"Failed to rename '{source}' to '{target}': "
            f"{verb} rejected with {reply.code} {reply.message}"
        )
        super().__init__(verb, reply, message)


class FTPClosedError(FTPError):
    """Operation attempted on a closed session."""

    def __init__(self, operation: str = "Operation"):
        self.operation = operation
        message = f"{operation} requires an open FTP session"
        super().__init__(message)


class FTPCancelledError(FTPError):
    """Operation cancelled by the caller."""

    def __init__(self, operation: str = "Operation"):
        self.operation = operation
        message = f"{operation} was cancelled"
        super().__init__(message)


def error_for_reply(verb: str, reply: "Reply") -> FTPError:
    """
    Map a failure reply to the matching exception.

    Args:
        verb: Command that produced the reply
        reply: Reply received from the server

    Returns:
        FTPTransientError for 4xx, FTPPermanentError for 5xx and
        FTPProtocolError for anything else that was not expected
    """
    if reply.is_transient_failure:
        return FTPTransientError(verb, reply)
    if reply.is_permanent_failure:
        return FTPPermanentError(verb, reply)
    return FTPProtocolError(
        f"Unexpected reply to {verb}: {reply.code} {reply.message}"
    )
