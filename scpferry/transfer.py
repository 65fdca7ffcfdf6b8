# Description: Run a TransferRequest: open one SSH session, hand it to the matching driver,
# and always disconnect. Every failure comes back as a TransferOutcome, never as an exception.

import logging

from scpferry import scp_sink, sftp_fetch
from scpferry.request import Direction, TransferOutcome, TransferRequest
from scpferry.secure_transfer import SecureSession


def execute(request: TransferRequest, session_factory=SecureSession) -> TransferOutcome:
    logging.info(
        f"Starting {request.direction.value} with {request.username}@{request.hostname}:{request.port}"
    )
    session = None
    try:
        session = session_factory(request.hostname, request.port, request.username)
        session.connect(
            password=request.password,
            private_key=request.private_key,
            proxy=request.proxy,
            strict_host_keys=request.strict_host_key_checking,
        )
        outcome = _dispatch(session, request)
    except Exception as e:
        logging.error(f"❌ {request.direction.value.capitalize()} to {request.hostname} failed: {e}")
        outcome = TransferOutcome.failed(e)
    finally:
        if session is not None:
            _disconnect(session)
    return outcome


def _dispatch(session, request):
    if request.direction is Direction.UPLOAD:
        return scp_sink.upload(
            session,
            request.local_path,
            request.remote_location,
            chunk_size=request.chunk_size,
            strict=request.strict_protocol,
        )
    return sftp_fetch.download(session, request.remote_location, request.local_path)


def _disconnect(session):
    try:
        session.disconnect()
    except Exception as e:
        logging.warning(f"⚠️ Error while disconnecting from session: {e}")
