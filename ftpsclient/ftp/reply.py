"""FTP reply parsing.

Decodes control-connection lines into Reply values and extracts the
addresses embedded in PASV/EPSV/PWD replies. Nothing here does I/O.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ftpsclient.ftp.exceptions import FTPProtocolError


REPLY_CODE_PATTERN = re.compile(r"^([1-5]\d\d)([ -]?)(.*)$")
PASV_PATTERN = re.compile(r"(\d{1,3}),(\d{1,3}),(\d{1,3}),(\d{1,3}),(\d{1,3}),(\d{1,3})")
EPSV_PATTERN = re.compile(r"\((.)\1\1(\d+)\1\)")


@dataclass
class Reply:
    """A complete server reply: status code plus ordered message lines."""
    code: int
    lines: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        """Reply text with line breaks collapsed to spaces."""
        return " ".join(line.strip() for line in self.lines if line.strip())

    @property
    def is_preliminary(self) -> bool:
        return 100 <= self.code < 200

    @property
    def is_success(self) -> bool:
        return 200 <= self.code < 300

    @property
    def is_intermediate(self) -> bool:
        return 300 <= self.code < 400

    @property
    def is_transient_failure(self) -> bool:
        return 400 <= self.code < 500

    @property
    def is_permanent_failure(self) -> bool:
        return 500 <= self.code < 600

    def __str__(self) -> str:
        return f"{self.code} {self.message}"


class ReplyParser:
    """
    Incremental parser for the FTP reply convention.

    A line "ddd text" is a complete reply. A line "ddd-text" opens a
    multi-line reply that ends at the first line starting with the same
    code followed by a space. Lines in between are kept verbatim.

    Usage:
        parser = ReplyParser()
        for line in lines:
            reply = parser.feed(line)
            if reply is not None:
                handle(reply)
    """

    def __init__(self):
        self._code: Optional[str] = None
        self._lines: List[str] = []

    @property
    def in_progress(self) -> bool:
        """True while a multi-line reply is waiting for its terminator."""
        return self._code is not None

    def reset(self) -> None:
        self._code = None
        self._lines = []

    def feed(self, line) -> Optional[Reply]:
        """
        Consume one line of a reply.

        Args:
            line: Line as bytes or str, with or without trailing CRLF

        Returns:
            The completed Reply, or None if more lines are needed

        Raises:
            FTPProtocolError: If the line cannot start a reply
        """
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.rstrip("\r\n")

        if self._code is not None:
            if line[:3] == self._code and line[3:4] == " ":
                self._lines.append(line[4:])
                return self._finish()
            self._lines.append(line)
            return None

        match = REPLY_CODE_PATTERN.match(line)
        if match is None:
            raise FTPProtocolError(f"Malformed reply line: {line!r}")

        code, separator, text = match.groups()
        if separator == "-":
            self._code = code
            self._lines = [text]
            return None
        return Reply(int(code), [text])

    def _finish(self) -> Reply:
        reply = Reply(int(self._code), self._lines)
        self.reset()
        return reply


def parse_reply(data) -> Reply:
    """
    Parse one complete reply from a block of text.

    Args:
        data: Raw reply bytes or text, possibly spanning several lines

    Returns:
        The parsed Reply

    Raises:
        FTPProtocolError: If the block is malformed or the multi-line
            terminator is missing
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")

    parser = ReplyParser()
    for line in data.splitlines():
        reply = parser.feed(line)
        if reply is not None:
            return reply
    if parser.in_progress:
        raise FTPProtocolError("Multi-line reply terminator missing")
    raise FTPProtocolError("Empty reply")


def parse_pasv_endpoint(message: str) -> Tuple[str, int]:
    """
    Extract host and port from a 227 reply ("h1,h2,h3,h4,p1,p2").

    Raises:
        FTPProtocolError: If no valid address is present
    """
    match = PASV_PATTERN.search(message)
    if match is None:
        raise FTPProtocolError(f"Invalid PASV reply: {message!r}")

    numbers = [int(n) for n in match.groups()]
    if any(n > 255 for n in numbers):
        raise FTPProtocolError(f"Invalid PASV reply: {message!r}")

    host = ".".join(str(n) for n in numbers[:4])
    port = (numbers[4] << 8) | numbers[5]
    return host, port


def parse_epsv_port(message: str) -> int:
    """
    Extract the port from a 229 reply ("(|||port|)").

    Raises:
        FTPProtocolError: If no valid port is present
    """
    matches = list(EPSV_PATTERN.finditer(message))
    if not matches:
        raise FTPProtocolError(f"Invalid EPSV reply: {message!r}")

    port = int(matches[-1].group(2))
    if not 1 <= port <= 65535:
        raise FTPProtocolError(f"Invalid EPSV port in reply: {message!r}")
    return port


def parse_pwd_path(message: str) -> Optional[str]:
    """Return the quoted directory from a 257 reply, or None."""
    start = message.find('"')
    if start < 0:
        return None

    path = []
    i = start + 1
    while i < len(message):
        ch = message[i]
        if ch == '"':
            # A doubled quote is an escaped quote inside the path
            if message[i + 1:i + 2] == '"':
                path.append('"')
                i += 2
                continue
            return "".join(path)
        path.append(ch)
        i += 1
    return None
