# Description: Push one local file to a remote `scp -t` sink over an exec channel.
#
# Wire format on the channel's stdin:
#   C0644 <length> <basename>\n   control line
#   <length raw bytes>            file payload
#   \x00                          end of file
#
# By default nothing is read back from the remote side. With strict=True the driver
# also waits for the sink's status byte before the control line, after it, and after
# the payload, and fails on anything but \x00.

import os
import logging
from contextlib import ExitStack

from scpferry.errors import ScpProtocolError, TransferError
from scpferry.request import DEFAULT_CHUNK_SIZE, TransferOutcome

FILE_MODE = "0644"
END_OF_FILE = b"\x00"


def remote_basename(location: str) -> str:
    """Name announced in the control line.

    A '/' only counts as a separator when it sits past index 0, so "/name" is
    announced as "/name" and "a/b/c" as "c".
    """
    index = location.rfind("/")
    if index > 0:
        return location[index + 1:]
    return location


def control_line(length: int, location: str) -> bytes:
    return f"C{FILE_MODE} {length} {remote_basename(location)}\n".encode()


def read_status(stdout):
    """Consume one sink acknowledgment; raise ScpProtocolError unless it is \\x00."""
    status = stdout.read(1)
    if status == b"\x00":
        return
    if not status:
        raise ScpProtocolError(-1, "connection closed while waiting for acknowledgment")
    message = stdout.readline().decode("utf-8", errors="replace").rstrip("\n")
    raise ScpProtocolError(status[0], message)


def upload(session, local_file, location=None, chunk_size=DEFAULT_CHUNK_SIZE, strict=False) -> TransferOutcome:
    """Upload local_file to location (default: its base name) and report the outcome."""
    local_file = os.fspath(local_file)
    if location is None:
        location = os.path.basename(local_file)

    try:
        _send(session, local_file, location, chunk_size, strict)
    except Exception as e:
        logging.error(f"❌ Upload of {local_file} to {location} failed: {e}")
        return TransferOutcome.failed(e)

    logging.info(f"✅ Uploaded {local_file} to {location}")
    return TransferOutcome.ok()


def _send(session, local_file, location, chunk_size, strict):
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")

    with ExitStack() as stack:
        # Opened before the channel so an unreadable file never reaches the wire.
        source = stack.enter_context(open(local_file, "rb"))
        length = os.fstat(source.fileno()).st_size

        command = f"scp -t {location}"
        logging.debug(f"Opening exec channel: {command}")
        channel = session.open_exec_channel(command)
        stack.callback(channel.disconnect)
        channel.connect()

        out = channel.stdin
        stack.callback(out.close)

        if strict:
            read_status(channel.stdout)

        header = control_line(length, location)
        logging.debug(f"Sending control line {header!r}")
        out.write(header)
        out.flush()
        if strict:
            read_status(channel.stdout)

        # Never send more or fewer bytes than the control line announced.
        remaining = length
        chunks = 0
        while remaining > 0:
            buf = source.read(min(chunk_size, remaining))
            if not buf:
                raise TransferError(f"{local_file} shrank during upload: {remaining} of {length} bytes missing")
            out.write(buf)
            out.flush()
            remaining -= len(buf)
            chunks += 1
        logging.debug(f"Sent {length} bytes in {chunks} chunks")

        out.write(END_OF_FILE)
        out.flush()
        if strict:
            read_status(channel.stdout)
