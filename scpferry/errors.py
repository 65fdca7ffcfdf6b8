# Description: Exception types raised inside the transfer drivers before they are folded into a TransferOutcome.


class TransferError(Exception):
    """Base class for failures detected by scpferry itself."""


class ScpProtocolError(TransferError):
    """The remote scp sink answered with a non-zero status byte."""

    def __init__(self, status, message=""):
        self.status = status
        self.message = message
        super().__init__(f"scp status {status}: {message}" if message else f"scp status {status}")


class ConfigError(TransferError):
    """Settings that cannot be turned into a TransferRequest."""
