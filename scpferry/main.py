# Description: Command line front end for scpferry.
#   scpferry upload LOCAL_FILE HOST USER [--location PATH]
#   scpferry download REMOTE_PATTERN LOCAL_DIR HOST USER

import re
import sys
import logging
import argparse

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from scpferry import __version__
from scpferry.errors import ConfigError
from scpferry.proxy import proxy_from_environment
from scpferry.request import DEFAULT_CHUNK_SIZE, DEFAULT_PORT, Proxy, download, upload
from scpferry.transfer import execute

console = Console()


def parse_proxy(value):
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return Proxy(host, int(port))


def build_parser():
    parser = argparse.ArgumentParser(prog="scpferry", description="Copy a file to or from a host over SSH.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-P", "--port", type=int, default=DEFAULT_PORT)
    common.add_argument("-i", "--identity", help="private key file")
    common.add_argument("--password")
    common.add_argument("--ask-password", action="store_true", help="prompt for the password")
    common.add_argument("--proxy", type=parse_proxy, help="HTTP proxy as HOST:PORT")
    common.add_argument("--no-proxy-env", action="store_true", help="ignore http.proxyHost/http.proxyPort")
    common.add_argument("--no-strict-host-key-checking", action="store_true")
    common.add_argument("--strict-protocol", action="store_true", help="check scp acknowledgment bytes")
    common.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="bytes per scp write")
    common.add_argument("-v", "--verbose", action="store_true")

    commands = parser.add_subparsers(dest="command", required=True)

    up = commands.add_parser("upload", parents=[common], help="push a file with scp -t")
    up.add_argument("local_file")
    up.add_argument("host")
    up.add_argument("user")
    up.add_argument("--location", help="remote path (default: local file name)")

    down = commands.add_parser("download", parents=[common], help="fetch files over SFTP")
    down.add_argument("remote_pattern")
    down.add_argument("local_dir")
    down.add_argument("host")
    down.add_argument("user")

    return parser


def build_request(args):
    if args.command == "upload":
        request = upload(args.local_file, args.host, args.user)
        if args.location:
            request = request.with_location(args.location)
    else:
        request = download(args.remote_pattern, args.local_dir, args.host, args.user)

    request = request.with_port(args.port)
    request = request.with_strict_host_key_checking(not args.no_strict_host_key_checking)
    request = request.with_strict_protocol(args.strict_protocol)
    request = request.with_chunk_size(args.chunk_size)

    password = args.password
    if args.ask_password:
        password = Prompt.ask(f"[bold yellow]Password for {args.user}@{args.host}[/bold yellow]", password=True)
    if password is not None:
        request = request.with_password(password)
    if args.identity:
        request = request.with_private_key(args.identity)

    proxy = args.proxy
    if proxy is None and not args.no_proxy_env:
        try:
            proxy = proxy_from_environment(args.host)
        except (ValueError, re.error) as e:
            raise ConfigError(f"invalid proxy settings in environment: {e}") from e
    if proxy is not None:
        request = request.with_proxy(proxy.host, proxy.port)

    return request


def show_summary(request):
    table = Table(title="scpferry", header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="yellow")
    table.add_row("Direction", request.direction.value)
    table.add_row("Local", request.local_path)
    table.add_row("Remote", f"{request.username}@{request.hostname}:{request.port}:{request.remote_location}")
    if request.proxy is not None:
        table.add_row("Proxy", f"{request.proxy.host}:{request.proxy.port}")
    table.add_row("Strict host keys", str(request.strict_host_key_checking))
    console.print(table)


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        request = build_request(args)
    except ConfigError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        return 2
    if args.verbose:
        show_summary(request)

    outcome = execute(request)
    if outcome.success:
        console.print(f"[green]✅ {request.direction.value.capitalize()} complete[/green]")
        return 0

    console.print(f"[bold red]❌ {request.direction.value.capitalize()} failed: {outcome.message}[/bold red]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
