# src/exceptions.py
from enum import Enum
from typing import Optional


class MCPException(Exception):
    """Base exception for MCP aggregation gateway"""
    pass

class AuthError(MCPException):
    """Raised when a caller cannot be resolved to a profile"""
    pass

class ServerConfigError(MCPException):
    """Raised when server configuration is invalid"""
    pass

class ServerNotFoundError(MCPException):
    """Raised when server is not found"""
    pass

class InvalidTargetError(MCPException):
    """Raised when a tool call cannot be routed to exactly one server"""
    pass

class TransportErrorKind(Enum):
    INVALID_ADDRESS = "invalid_address"
    CONNECT_FAILED = "connect_failed"
    TIMEOUT = "timeout"

class TransportError(MCPException):
    """Raised when an upstream cannot be reached"""

    def __init__(
        self,
        message: str,
        kind: TransportErrorKind = TransportErrorKind.CONNECT_FAILED,
        cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.cause = cause

class HandshakeError(MCPException):
    """Raised when the MCP initialize handshake fails"""
    pass

class ProtocolError(MCPException):
    """Raised when an upstream rejects or garbles a tools request"""
    pass

class ToolDiscoveryError(ProtocolError):
    """Raised when tool discovery fails"""
    pass
