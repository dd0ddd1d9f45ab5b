from typing import Any, Optional
from dataclasses import dataclass, field
from enum import Enum

from src.constants import (
    SERVER_TYPE_SSE,
    SERVER_TYPE_STDIO,
    STATUS_ACTIVE,
    STATUS_INACTIVE
)
from src.exceptions import ServerConfigError


class ServerType(Enum):
    SSE = SERVER_TYPE_SSE
    STDIO = SERVER_TYPE_STDIO


class ServerStatus(Enum):
    ACTIVE = STATUS_ACTIVE
    INACTIVE = STATUS_INACTIVE


@dataclass
class UpstreamServerConfig:
    """Upstream MCP server configuration record (read-only to the gateway)"""
    id: str
    name: str
    type: ServerType
    status: ServerStatus = ServerStatus.ACTIVE
    url: Optional[str] = None
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    description: Optional[str] = None
    profile_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is ServerStatus.ACTIVE

    @property
    def is_well_formed(self) -> bool:
        """True when exactly one of url/command is set, matching the type"""
        if self.type is ServerType.SSE:
            return bool(self.url) and not self.command
        return bool(self.command) and not self.url

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UpstreamServerConfig":
        """Build a config from a stored record.

        Accepts either ``uuid`` or ``id`` as the identifier and
        ``profile_uuid`` or ``profile_id`` for the owning profile.
        """
        server_id = data.get("uuid") or data.get("id")
        name = data.get("name")
        if not server_id or not name:
            raise ServerConfigError(f"Server record requires uuid and name: {data!r}")

        try:
            server_type = ServerType(str(data.get("type", "")).upper())
        except ValueError:
            raise ServerConfigError(f"Unknown server type for '{name}': {data.get('type')!r}")

        try:
            status = ServerStatus(str(data.get("status", STATUS_ACTIVE)).upper())
        except ValueError:
            raise ServerConfigError(f"Unknown server status for '{name}': {data.get('status')!r}")

        args = data.get("args") or []
        if not isinstance(args, list):
            raise ServerConfigError(f"Server '{name}' args must be a list")

        return cls(
            id=str(server_id),
            name=name,
            type=server_type,
            status=status,
            url=data.get("url") or None,
            command=data.get("command") or None,
            args=[str(arg) for arg in args],
            env=dict(data.get("env") or {}),
            description=data.get("description"),
            profile_id=data.get("profile_uuid") or data.get("profile_id")
        )

    def to_dict(self) -> dict[str, Any]:
        """Public view of the record (env values are never exposed)"""
        data: dict[str, Any] = {
            "uuid": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
            "description": self.description
        }
        if self.type is ServerType.SSE:
            data["url"] = self.url
        else:
            data["command"] = self.command
            data["args"] = list(self.args)
        return data


@dataclass
class Tool:
    """A tool advertised by an upstream, tagged with the server that owns it"""
    name: str
    input_schema: dict[str, Any]
    owner_server_id: str
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "ownerServerId": self.owner_server_id
        }


@dataclass
class ToolInvocationRequest:
    tool_name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    target_server_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolInvocationRequest":
        """Parse the POST body ``{toolName, parameters, serverUuid?}``"""
        tool_name = data.get("toolName")
        if not isinstance(tool_name, str) or not tool_name:
            raise ValueError("toolName is required")

        parameters = data.get("parameters")
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            raise ValueError("parameters must be an object")

        target = data.get("serverUuid")
        if target is not None and not isinstance(target, str):
            raise ValueError("serverUuid must be a string")

        return cls(tool_name=tool_name, parameters=parameters, target_server_id=target or None)
