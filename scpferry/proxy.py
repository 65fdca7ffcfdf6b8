# Description: HTTP CONNECT tunnelling for SSH sessions and proxy lookup from http.proxyHost style settings.

import os
import re
import socket
import logging

from scpferry.errors import TransferError
from scpferry.request import Proxy

PROXY_HOST_KEY = "http.proxyHost"
PROXY_PORT_KEY = "http.proxyPort"
NON_PROXY_HOSTS_KEY = "http.nonProxyHosts"


def proxy_from_environment(hostname, environ=None):
    """Return the Proxy configured in environ for hostname, or None."""
    if environ is None:
        environ = os.environ
    host = environ.get(PROXY_HOST_KEY)
    port = environ.get(PROXY_PORT_KEY)
    if host is None or port is None:
        return None

    non_proxy_hosts = environ.get(NON_PROXY_HOSTS_KEY)
    if non_proxy_hosts is not None and re.fullmatch(non_proxy_hosts, hostname):
        logging.debug(f"{hostname} matches {NON_PROXY_HOSTS_KEY}, connecting directly")
        return None

    return Proxy(host, int(port))


def open_tunnel(proxy: Proxy, hostname: str, port: int, timeout=None):
    """Connect to proxy and ask it to CONNECT to hostname:port; returns the tunnelled socket."""
    sock = socket.create_connection((proxy.host, proxy.port), timeout=timeout)
    try:
        request = f"CONNECT {hostname}:{port} HTTP/1.0\r\nHost: {hostname}:{port}\r\n\r\n"
        sock.sendall(request.encode("ascii"))

        reply = _read_headers(sock)
        status_line = reply.split(b"\r\n", 1)[0].decode("latin-1")
        parts = status_line.split(" ", 2)
        if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].startswith("2"):
            raise TransferError(f"proxy {proxy.host}:{proxy.port} refused tunnel: {status_line}")

        logging.debug(f"Tunnel to {hostname}:{port} open through {proxy.host}:{proxy.port}")
        return sock
    except BaseException:
        sock.close()
        raise


def _read_headers(sock):
    buf = b""
    while b"\r\n\r\n" not in buf:
        chunk = sock.recv(1)
        if not chunk:
            raise TransferError("proxy closed the connection before finishing its reply")
        buf += chunk
    return buf
