# Description: Secure channel provider built on paramiko.
# A SecureSession authenticates once and hands out exec channels (remote command with
# stdin/stdout byte streams) and SFTP channels (ls/get). The drivers only see these objects.

import os
import fnmatch
import logging
import posixpath
import stat

import paramiko

from scpferry.proxy import open_tunnel

GLOB_CHARS = "*?["


class ExecChannel:
    def __init__(self, transport, command):
        self.transport = transport
        self.command = command
        self.channel = None
        self.stdin = None
        self.stdout = None

    def connect(self):
        """Open the session channel and start the remote command."""
        self.channel = self.transport.open_session()
        self.channel.exec_command(self.command)
        self.stdin = self.channel.makefile_stdin("wb")
        self.stdout = self.channel.makefile("rb")

    def disconnect(self):
        if self.channel is not None:
            self.channel.close()


class SftpChannel:
    def __init__(self, client):
        self.client = client
        self.sftp = None

    def connect(self):
        self.sftp = self.client.open_sftp()

    def ls(self, pattern):
        """List (remote_path, SFTPAttributes) pairs for a file, a directory or a glob."""
        directory, name = posixpath.split(pattern)
        if any(c in name for c in GLOB_CHARS):
            entries = self.sftp.listdir_attr(directory or ".")
            return [
                (posixpath.join(directory, entry.filename), entry)
                for entry in entries
                if fnmatch.fnmatchcase(entry.filename, name)
            ]

        attrs = self.sftp.stat(pattern)
        if stat.S_ISDIR(attrs.st_mode or 0):
            return [(posixpath.join(pattern, entry.filename), entry) for entry in self.sftp.listdir_attr(pattern)]
        attrs.filename = name
        return [(pattern, attrs)]

    def get(self, path):
        return self.sftp.open(path, "rb")

    def disconnect(self):
        if self.sftp is not None:
            self.sftp.close()


class SecureSession:
    def __init__(self, hostname, port=22, username=None):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.client = paramiko.SSHClient()

    def connect(self, password=None, private_key=None, proxy=None, strict_host_keys=True):
        """Authenticate with private_key if given, else password, else paramiko's defaults."""
        if strict_host_keys:
            self.client.load_system_host_keys()
            self.client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        sock = None
        if proxy is not None and proxy.enabled:
            logging.info(f"Connecting to {self.hostname}:{self.port} through proxy {proxy.host}:{proxy.port}")
            sock = open_tunnel(proxy, self.hostname, self.port)

        kwargs = {"port": self.port, "username": self.username, "sock": sock}
        if private_key is not None:
            kwargs["key_filename"] = os.path.expanduser(private_key)
        elif password is not None:
            kwargs["password"] = password

        self.client.connect(self.hostname, **kwargs)
        logging.info(f"Connected to {self.username}@{self.hostname}:{self.port}")

    def open_exec_channel(self, command):
        return ExecChannel(self.client.get_transport(), command)

    def open_sftp_channel(self):
        return SftpChannel(self.client)

    def disconnect(self):
        self.client.close()
