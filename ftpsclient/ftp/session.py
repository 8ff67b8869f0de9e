"""FTP session facade for the FTPS client.

Provides dial() and the Session class: authentication, working
directory bookkeeping and the high-level listing, transfer and
file-management operations.
"""

import io
import logging
import posixpath
import threading
from typing import BinaryIO, Callable, List, Optional, TypeVar

from ftpsclient.config.credentials import CredentialManager
from ftpsclient.config.settings import ClientSettings
from ftpsclient.ftp.context import OperationContext, ensure_context
from ftpsclient.ftp.control import ChannelState, ControlChannel, DialOptions
from ftpsclient.ftp.data import DataChannelNegotiator, DataStream
from ftpsclient.ftp.exceptions import (
    FTPCancelledError,
    FTPClosedError,
    FTPDirectoryExistsError,
    FTPError,
    FTPRenameError,
    error_for_reply,
)
from ftpsclient.ftp.listing import ListEntry, parse_listing
from ftpsclient.ftp.reply import Reply, parse_pwd_path
from ftpsclient.utils.validators import validate_remote_path

logger = logging.getLogger("ftpsclient.session")

T = TypeVar("T")

# Seconds allowed for the completion reply after a failed or cancelled transfer
DRAIN_TIMEOUT = 5.0

# Reply codes some servers use for "directory already exists"
DIRECTORY_EXISTS_CODES = (521,)


def resolve_remote_path(cwd: str, path: str) -> str:
    """
    Resolve a path against a working directory.

    Args:
        cwd: Last-known working directory
        path: Absolute or relative path

    Returns:
        Normalized absolute path (".", ".." and repeated "/" collapsed)
    """
    if not path:
        return cwd
    resolved = posixpath.normpath(posixpath.join(cwd or "/", path))
    # normpath keeps a leading "//" (POSIX allows it to be special)
    if resolved.startswith("//"):
        resolved = "/" + resolved.lstrip("/")
    return resolved


def _reports_existing(reply: Reply) -> bool:
    if reply.code in DIRECTORY_EXISTS_CODES:
        return True
    text = reply.message.lower()
    return (
        reply.is_permanent_failure
        and "exist" in text
        and "not exist" not in text
        and "no such" not in text
    )


class Session:
    """
    Authenticated FTP session.

    Usage:
        options = DialOptions(host="ftp.example.com", tls_mode=TLSMode.EXPLICIT)
        with dial(options) as session:
            session.make_directory("reports")
            session.change_directory("reports")
            with open("report.csv", "rb") as f:
                session.upload("report.csv", f)
            for entry in session.list():
                print(entry.name, entry.size)
    """

    def __init__(
        self,
        control: ControlChannel,
        negotiator: Optional[DataChannelNegotiator] = None,
        working_directory: str = "/"
    ):
        """
        Initialize the session.

        Args:
            control: Authenticated control channel (owned by the session)
            negotiator: Data channel negotiator, defaults to one for control
            working_directory: Initial working directory reported by the server
        """
        self._control = control
        self._negotiator = negotiator or DataChannelNegotiator(control)
        self._cwd = working_directory
        self._closed = False
        self._lock = threading.Lock()

    @property
    def current_directory(self) -> str:
        """Last-known remote working directory."""
        return self._cwd

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def control(self) -> ControlChannel:
        return self._control

    def resolve(self, path: str) -> str:
        """Resolve a path against the current working directory."""
        return resolve_remote_path(self._cwd, path)

    def _remote_path(self, path: str) -> str:
        is_valid, error = validate_remote_path(path)
        if not is_valid:
            raise ValueError(error)
        return self.resolve(path)

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise FTPClosedError(operation)

    def _abandon(self, reason: str) -> None:
        """Drop a control connection that can no longer be trusted."""
        logger.warning(f"Dropping control connection: {reason}")
        self._closed = True
        self._control.abort()

    def _command(
        self,
        verb: str,
        argument: Optional[str],
        context: Optional[OperationContext]
    ) -> Reply:
        try:
            return self._control.command(verb, argument, context)
        except FTPError as e:
            if self._control.state is ChannelState.ERROR:
                self._abandon(f"{verb} failed: {e}")
            raise

    def _expect_success(
        self,
        verb: str,
        argument: Optional[str],
        context: Optional[OperationContext]
    ) -> Reply:
        reply = self._command(verb, argument, context)
        if not reply.is_success:
            raise error_for_reply(verb, reply)
        return reply

    def _transfer(
        self,
        operation: str,
        verb: str,
        argument: Optional[str],
        move: Callable[[DataStream, OperationContext], T],
        context: Optional[OperationContext],
        allow_no_data: bool = False
    ) -> Optional[T]:
        """
        Run one data transfer.

        Opens a passive connection, sends the transfer command, hands the
        stream to move() and always finishes through _finish_transfer.

        Args:
            operation: Name used in errors and logs
            verb: Transfer command (LIST, STOR, RETR)
            argument: Command argument
            move: Callable copying bytes over the stream
            context: Optional deadline/cancellation
            allow_no_data: Accept a 2xx without a preliminary reply

        Returns:
            Whatever move() returned (None if no data was transferred)
        """
        context = ensure_context(context)
        context.check(operation)

        try:
            stream = self._negotiator.open_passive(context)
        except FTPError as e:
            if self._control.state is ChannelState.ERROR:
                self._abandon(f"passive negotiation failed: {e}")
            raise

        try:
            reply = self._command(verb, argument, context)
        except BaseException:
            stream.abort()
            raise

        if not reply.is_preliminary:
            stream.abort()
            if allow_no_data and reply.is_success:
                return None
            raise error_for_reply(verb, reply)

        failure = None
        try:
            return move(stream, context)
        except BaseException as e:
            failure = e
            raise
        finally:
            self._finish_transfer(verb, stream, failure, context)

    def _finish_transfer(
        self,
        verb: str,
        stream: DataStream,
        failure: Optional[BaseException],
        context: OperationContext
    ) -> None:
        """
        Close the data stream and drain the completion reply.

        Runs on every transfer path. If the reply cannot be read the
        control connection is dropped, since the next command would be
        answered with this transfer's reply.
        """
        if failure is None:
            stream.close()
            drain_context = context
        else:
            stream.abort()
            drain_context = OperationContext(timeout=DRAIN_TIMEOUT)

        try:
            reply = self._control.read_reply(drain_context, verb=verb)
        except FTPError as e:
            self._abandon(f"no completion reply to {verb}: {e}")
            if failure is None:
                raise
            return

        if failure is not None:
            logger.debug(f"{verb} ended with {reply} after error: {failure}")
            if isinstance(failure, FTPCancelledError):
                logger.info(f"{verb} cancelled; control connection still in sync")
            return
        if not reply.is_success:
            raise error_for_reply(verb, reply)

    def list(
        self,
        path: Optional[str] = None,
        context: Optional[OperationContext] = None
    ) -> List[ListEntry]:
        """
        List a directory.

        Args:
            path: Directory to list (current directory when omitted)
            context: Optional deadline/cancellation

        Returns:
            Parsed entries; an empty directory gives an empty list
        """
        with self._lock:
            self._ensure_open("List")
            argument = self.resolve(path) if path else None
            buffer = io.BytesIO()
            self._transfer(
                "List",
                "LIST",
                argument,
                lambda stream, ctx: stream.copy_to(buffer, ctx),
                context,
                allow_no_data=True,
            )
            entries = parse_listing(buffer.getvalue().decode("utf-8", errors="replace"))
            logger.debug(f"Listed {argument or self._cwd}: {len(entries)} entries")
            return entries

    def upload(
        self,
        remote_name: str,
        source: BinaryIO,
        context: Optional[OperationContext] = None
    ) -> int:
        """
        Store a file.

        Args:
            remote_name: Remote path, resolved against the working directory
            source: Binary stream to read from
            context: Optional deadline/cancellation

        Returns:
            Number of bytes sent
        """
        with self._lock:
            self._ensure_open("Upload")
            path = self._remote_path(remote_name)
            sent = self._transfer(
                "Upload",
                "STOR",
                path,
                lambda stream, ctx: stream.copy_from(source, ctx),
                context,
            )
            logger.info(f"Uploaded {path} ({sent} bytes)")
            return sent

    def download(
        self,
        remote_name: str,
        sink: BinaryIO,
        context: Optional[OperationContext] = None
    ) -> int:
        """
        Retrieve a file.

        Args:
            remote_name: Remote path, resolved against the working directory
            sink: Binary stream to write into
            context: Optional deadline/cancellation

        Returns:
            Number of bytes received
        """
        with self._lock:
            self._ensure_open("Download")
            path = self._remote_path(remote_name)
            received = self._transfer(
                "Download",
                "RETR",
                path,
                lambda stream, ctx: stream.copy_to(sink, ctx),
                context,
            )
            logger.info(f"Downloaded {path} ({received} bytes)")
            return received

    def change_directory(self, path: str, context: Optional[OperationContext] = None) -> None:
        """Change the working directory; the cached path changes only on success."""
        with self._lock:
            self._ensure_open("Change directory")
            target = self._remote_path(path)
            self._expect_success("CWD", target, context)
            self._cwd = target

    def make_directory(self, path: str, context: Optional[OperationContext] = None) -> str:
        """
        Create a directory.

        Returns:
            The resolved path of the new directory

        Raises:
            FTPDirectoryExistsError: If the server reports it already exists
        """
        with self._lock:
            self._ensure_open("Make directory")
            target = self._remote_path(path)
            reply = self._command("MKD", target, context)
            if reply.is_success:
                return target
            if _reports_existing(reply):
                raise FTPDirectoryExistsError(target, reply)
            raise error_for_reply("MKD", reply)

    def remove_file(self, path: str, context: Optional[OperationContext] = None) -> None:
        with self._lock:
            self._ensure_open("Remove file")
            self._expect_success("DELE", self._remote_path(path), context)

    def rename_file(
        self,
        source: str,
        target: str,
        context: Optional[OperationContext] = None
    ) -> None:
        """
        Rename a file with RNFR/RNTO.

        Raises:
            FTPRenameError: If either command is rejected; stage names which
        """
        with self._lock:
            self._ensure_open("Rename file")
            old_path = self._remote_path(source)
            new_path = self._remote_path(target)

            reply = self._command("RNFR", old_path, context)
            if not reply.is_intermediate:
                raise FTPRenameError(old_path, new_path, "RNFR", reply)

            reply = self._command("RNTO", new_path, context)
            if not reply.is_success:
                raise FTPRenameError(old_path, new_path, "RNTO", reply)
            logger.info(f"Renamed {old_path} to {new_path}")

    def close(self, context: Optional[OperationContext] = None) -> None:
        """
        Close the session. Closing twice is a no-op.

        Raises:
            FTPNetworkError: If QUIT failed; the connection is released anyway
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._control.close(context)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return
        # Keep the original error from the with block
        try:
            self.close()
        except FTPError as e:
            logger.warning(f"Closing after {exc_type.__name__} also failed: {e}")


def _initial_directory(control: ControlChannel, context: OperationContext) -> str:
    reply = control.command("PWD", context=context)
    if reply.is_success:
        path = parse_pwd_path(reply.message)
        if path:
            return path
    logger.warning(f"Could not determine working directory ({reply}), assuming /")
    return "/"


def dial(options: DialOptions, context: Optional[OperationContext] = None) -> Session:
    """
    Connect, log in and return a ready Session.

    Args:
        options: Connection options
        context: Optional deadline/cancellation for the whole handshake

    Returns:
        Session

    Raises:
        FTPConfigurationError: If TLS is disabled without insecure_unencrypted
        FTPConnectionError: If the server cannot be reached
        FTPTLSError: If TLS setup fails
        FTPAuthenticationError: If login is rejected
    """
    context = ensure_context(context)
    control = ControlChannel.connect(options, context)
    try:
        control.authenticate(options.username, options.password, context)
        control.prepare_transfers(context)
        cwd = _initial_directory(control, context)
    except FTPError:
        try:
            control.close()
        except FTPError as e:
            logger.debug(f"QUIT after failed login did not complete: {e}")
        raise
    except BaseException:
        control.abort()
        raise

    return Session(control, working_directory=cwd)


def dial_with_settings(
    settings: ClientSettings,
    credentials: Optional[CredentialManager] = None,
    context: Optional[OperationContext] = None
) -> Session:
    """
    Dial using saved settings and a keyring-stored password.

    Args:
        settings: Persisted connection settings
        credentials: Credential store (system keyring by default)
        context: Optional deadline/cancellation

    Returns:
        Session
    """
    credentials = credentials or CredentialManager()
    password = ""
    if settings.username:
        password = credentials.get_password(
            settings.host, settings.port, settings.username
        ) or ""
    return dial(settings.to_dial_options(password), context)
