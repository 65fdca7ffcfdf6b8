import os
import stat
from unittest import mock

import paramiko
import pytest

from scpferry import secure_transfer
from scpferry.request import Proxy
from scpferry.secure_transfer import ExecChannel, SecureSession, SftpChannel


@pytest.fixture
def client():
    with mock.patch.object(secure_transfer.paramiko, "SSHClient") as cls:
        yield cls.return_value


def attrs(name, mode):
    a = paramiko.SFTPAttributes()
    a.filename = name
    a.st_mode = mode
    return a


@pytest.mark.unit
def test_strict_host_keys_use_known_hosts_and_reject_policy(client) -> None:
    SecureSession("h", 22, "u").connect(password="pw")

    client.load_system_host_keys.assert_called_once_with()
    policy = client.set_missing_host_key_policy.call_args[0][0]
    assert isinstance(policy, paramiko.RejectPolicy)
    client.connect.assert_called_once_with("h", port=22, username="u", sock=None, password="pw")


@pytest.mark.unit
def test_relaxed_host_keys_auto_add(client) -> None:
    SecureSession("h", 2222, "u").connect(strict_host_keys=False)

    client.load_system_host_keys.assert_not_called()
    policy = client.set_missing_host_key_policy.call_args[0][0]
    assert isinstance(policy, paramiko.AutoAddPolicy)
    client.connect.assert_called_once_with("h", port=2222, username="u", sock=None)


@pytest.mark.unit
def test_private_key_wins_over_password(client) -> None:
    SecureSession("h", 22, "u").connect(password="pw", private_key="~/.ssh/id_ed25519")

    kwargs = client.connect.call_args[1]
    assert kwargs["key_filename"] == os.path.expanduser("~/.ssh/id_ed25519")
    assert "password" not in kwargs


@pytest.mark.unit
def test_proxy_tunnel_is_used_as_socket(client, monkeypatch: pytest.MonkeyPatch) -> None:
    tunnel = object()
    calls = []

    def fake_open_tunnel(proxy, hostname, port):
        calls.append((proxy, hostname, port))
        return tunnel

    monkeypatch.setattr(secure_transfer, "open_tunnel", fake_open_tunnel)

    SecureSession("h", 22, "u").connect(proxy=Proxy("proxy.local", 3128))

    assert calls == [(Proxy("proxy.local", 3128), "h", 22)]
    assert client.connect.call_args[1]["sock"] is tunnel


@pytest.mark.unit
def test_proxy_without_port_is_ignored(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(secure_transfer, "open_tunnel", mock.Mock(side_effect=AssertionError))

    SecureSession("h", 22, "u").connect(proxy=Proxy("proxy.local", 0))

    assert client.connect.call_args[1]["sock"] is None


@pytest.mark.unit
def test_disconnect_closes_client(client) -> None:
    SecureSession("h").disconnect()

    client.close.assert_called_once_with()


@pytest.mark.unit
def test_exec_channel_runs_command() -> None:
    transport = mock.Mock()
    channel = transport.open_session.return_value

    exec_channel = ExecChannel(transport, "scp -t /tmp/x")
    exec_channel.connect()
    exec_channel.disconnect()

    channel.exec_command.assert_called_once_with("scp -t /tmp/x")
    assert exec_channel.stdin is channel.makefile_stdin.return_value
    assert exec_channel.stdout is channel.makefile.return_value
    channel.close.assert_called_once_with()


@pytest.mark.unit
def test_exec_channel_disconnect_before_connect_is_noop() -> None:
    ExecChannel(mock.Mock(), "scp -t x").disconnect()


@pytest.mark.unit
def test_sftp_ls_glob_filters_parent_listing() -> None:
    client = mock.Mock()
    sftp = client.open_sftp.return_value
    sftp.listdir_attr.return_value = [
        attrs("a.log", stat.S_IFREG | 0o644),
        attrs("b.txt", stat.S_IFREG | 0o644),
        attrs("c.log", stat.S_IFREG | 0o644),
    ]

    channel = SftpChannel(client)
    channel.connect()
    entries = channel.ls("/var/log/*.log")

    sftp.listdir_attr.assert_called_once_with("/var/log")
    assert [path for path, _ in entries] == ["/var/log/a.log", "/var/log/c.log"]


@pytest.mark.unit
def test_sftp_ls_relative_glob_lists_current_directory() -> None:
    client = mock.Mock()
    sftp = client.open_sftp.return_value
    sftp.listdir_attr.return_value = [attrs("x.csv", stat.S_IFREG | 0o644)]

    channel = SftpChannel(client)
    channel.connect()

    assert [p for p, _ in channel.ls("*.csv")] == ["x.csv"]
    sftp.listdir_attr.assert_called_once_with(".")


@pytest.mark.unit
def test_sftp_ls_directory_lists_contents() -> None:
    client = mock.Mock()
    sftp = client.open_sftp.return_value
    sftp.stat.return_value = attrs(None, stat.S_IFDIR | 0o755)
    sftp.listdir_attr.return_value = [attrs("one", stat.S_IFREG | 0o644)]

    channel = SftpChannel(client)
    channel.connect()

    assert [p for p, _ in channel.ls("pub")] == ["pub/one"]


@pytest.mark.unit
def test_sftp_ls_plain_file_yields_single_entry() -> None:
    client = mock.Mock()
    sftp = client.open_sftp.return_value
    sftp.stat.return_value = attrs(None, stat.S_IFREG | 0o644)

    channel = SftpChannel(client)
    channel.connect()
    entries = channel.ls("docs/readme.txt")

    assert len(entries) == 1
    path, entry = entries[0]
    assert path == "docs/readme.txt"
    assert entry.filename == "readme.txt"


@pytest.mark.unit
def test_sftp_get_opens_for_binary_read() -> None:
    client = mock.Mock()
    sftp = client.open_sftp.return_value

    channel = SftpChannel(client)
    channel.connect()
    source = channel.get("docs/readme.txt")
    channel.disconnect()

    sftp.open.assert_called_once_with("docs/readme.txt", "rb")
    assert source is sftp.open.return_value
    sftp.close.assert_called_once_with()
