# Description: Upload a file with the SCP sink protocol or fetch files over SFTP, on top of paramiko.

__version__ = "1.0.0"

from scpferry.request import Direction, Proxy, TransferOutcome, TransferRequest, download, upload  # noqa: E402
from scpferry.transfer import execute  # noqa: E402

__all__ = [
    "Direction",
    "Proxy",
    "TransferOutcome",
    "TransferRequest",
    "download",
    "execute",
    "upload",
]
