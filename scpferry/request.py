# Description: Immutable description of a single transfer and the outcome it produces.
# A request is built with upload() or download() and refined with the with_* methods,
# each of which returns a new request. Nothing here touches the network.

import os
import enum
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_PORT = 22
DEFAULT_CHUNK_SIZE = 4096


class Direction(enum.Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class Proxy:
    host: str
    port: int

    @property
    def enabled(self) -> bool:
        return bool(self.host) and self.port > 0


@dataclass(frozen=True)
class TransferOutcome:
    success: bool
    error: Optional[Exception] = None

    @classmethod
    def ok(cls):
        return cls(success=True)

    @classmethod
    def failed(cls, error: Exception):
        return cls(success=False, error=error)

    @property
    def message(self) -> str:
        """Human readable description of the failure, empty on success."""
        if self.error is None:
            return ""
        text = str(self.error)
        name = type(self.error).__name__
        return f"{name}: {text}" if text else name


@dataclass(frozen=True)
class TransferRequest:
    direction: Direction
    local_path: str
    hostname: str
    username: str
    location: Optional[str] = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    port: int = DEFAULT_PORT
    proxy: Optional[Proxy] = None
    strict_host_key_checking: bool = True
    strict_protocol: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @property
    def remote_location(self) -> str:
        """Location used on the remote side; uploads fall back to the local base name."""
        if self.location is not None:
            return self.location
        if self.direction is Direction.UPLOAD:
            return os.path.basename(self.local_path)
        raise ValueError("a download needs a remote location")

    def with_location(self, location: str):
        return replace(self, location=location)

    def with_password(self, password: str):
        return replace(self, password=password)

    def with_private_key(self, private_key: str):
        return replace(self, private_key=private_key)

    def with_port(self, port: int):
        return replace(self, port=port)

    def with_proxy(self, host: str, port: int):
        return replace(self, proxy=Proxy(host, port))

    def with_strict_host_key_checking(self, strict: bool):
        return replace(self, strict_host_key_checking=strict)

    def with_strict_protocol(self, strict: bool):
        return replace(self, strict_protocol=strict)

    def with_chunk_size(self, chunk_size: int):
        return replace(self, chunk_size=chunk_size)

    def execute(self, **kwargs) -> TransferOutcome:
        from scpferry.transfer import execute

        return execute(self, **kwargs)


def upload(local_file, hostname: str, username: str) -> TransferRequest:
    """Request to push local_file to hostname with the SCP sink protocol."""
    return TransferRequest(Direction.UPLOAD, os.fspath(local_file), hostname, username)


def download(remote_pattern: str, local_directory, hostname: str, username: str) -> TransferRequest:
    """Request to fetch every entry matching remote_pattern into local_directory over SFTP."""
    return TransferRequest(
        Direction.DOWNLOAD, os.fspath(local_directory), hostname, username, location=remote_pattern
    )
