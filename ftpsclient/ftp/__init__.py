"""FTP protocol module for the FTPS client.

This module implements the protocol client:
- reply: Reply parsing (pure, no I/O)
- control: DialOptions and the ControlChannel command connection
- data: Passive DataStream negotiation
- session: Session facade and dial()
- listing: LIST output decoding
- context: Deadline and cancellation for blocking calls
- exceptions: FTP-specific error types
"""
