"""FTP/FTPS client.

Dial a server over implicit or explicit TLS and list, upload,
download, rename and delete remote files:

    from ftpsclient import DialOptions, TLSMode, dial

    with dial(DialOptions(host="ftp.example.com", tls_mode=TLSMode.EXPLICIT)) as session:
        print(session.list())
"""

from ftpsclient.ftp.context import OperationContext
from ftpsclient.ftp.control import ControlChannel, DialOptions, TLSConfig, TLSMode
from ftpsclient.ftp.data import DataChannelNegotiator, DataEndpoint, DataStream
from ftpsclient.ftp.exceptions import (
    FTPAuthenticationError,
    FTPCancelledError,
    FTPClosedError,
    FTPConfigurationError,
    FTPConnectionError,
    FTPDirectoryExistsError,
    FTPError,
    FTPNetworkError,
    FTPPermanentError,
    FTPProtocolError,
    FTPRenameError,
    FTPReplyError,
    FTPTimeoutError,
    FTPTLSError,
    FTPTransientError,
)
from ftpsclient.ftp.listing import ListEntry
from ftpsclient.ftp.reply import Reply
from ftpsclient.ftp.session import Session, dial, dial_with_settings

__version__ = "1.0.0"

__all__ = [
    "ControlChannel",
    "DataChannelNegotiator",
    "DataEndpoint",
    "DataStream",
    "DialOptions",
    "FTPAuthenticationError",
    "FTPCancelledError",
    "FTPClosedError",
    "FTPConfigurationError",
    "FTPConnectionError",
    "FTPDirectoryExistsError",
    "FTPError",
    "FTPNetworkError",
    "FTPPermanentError",
    "FTPProtocolError",
    "FTPRenameError",
    "FTPReplyError",
    "FTPTimeoutError",
    "FTPTLSError",
    "FTPTransientError",
    "ListEntry",
    "OperationContext",
    "Reply",
    "Session",
    "TLSConfig",
    "TLSMode",
    "dial",
    "dial_with_settings",
]
