# Description: Fetch every remote entry matching a path or glob into a local directory over SFTP.
# Existing local files are overwritten. The first failure stops the loop; files copied
# before it stay on disk.

import os
import shutil
import stat
import logging

from scpferry.request import TransferOutcome


def download(session, remote_pattern, local_directory) -> TransferOutcome:
    """Copy each entry listed for remote_pattern into local_directory."""
    local_directory = os.fspath(local_directory)
    channel = session.open_sftp_channel()
    try:
        channel.connect()
        copied = _copy_entries(channel, remote_pattern, local_directory)
    except Exception as e:
        logging.error(f"❌ Download of {remote_pattern} into {local_directory} failed: {e}")
        return TransferOutcome.failed(e)
    finally:
        channel.disconnect()

    logging.info(f"✅ Downloaded {copied} file(s) matching {remote_pattern} into {local_directory}")
    return TransferOutcome.ok()


def _copy_entries(channel, remote_pattern, local_directory):
    copied = 0
    for remote_path, entry in channel.ls(remote_pattern):
        if entry.st_mode is not None and stat.S_ISDIR(entry.st_mode):
            logging.debug(f"Skipping directory {remote_path}")
            continue

        target = os.path.join(local_directory, entry.filename)
        source = channel.get(remote_path)
        try:
            with open(target, "wb") as f:
                shutil.copyfileobj(source, f)
        finally:
            source.close()

        logging.debug(f"Copied {remote_path} -> {target}")
        copied += 1
    return copied
