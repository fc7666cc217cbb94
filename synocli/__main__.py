"""
CLI interface for synocli, a client for encrypted shares on a Synology NAS.
"""

import sys
import getpass
import logging
import click
from typing import Callable, List, NoReturn, Optional, Sequence
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .api.transport import Transport
from .exceptions import (
    BatchUnlockError,
    SynoCliException,
    ValidationError,
)
from .session import SessionManager, SessionScope
from .shares import BatchCoordinator, Share, ShareService, UnlockRequest, load_manifest


def exit_with_error(error: Exception, scope: Optional[SessionScope] = None) -> NoReturn:
    """Report an error (and a failed logout, if any) and exit with status 1."""
    if isinstance(error, BatchUnlockError):
        click.echo(
            f"Error: Unlocking share '{error.request.share_name}' failed: {error.cause}. Aborting.",
            err=True,
        )
        if error.completed:
            unlocked = ", ".join(r.share_name for r in error.completed)
            click.echo(f"Already unlocked: {unlocked}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)

    if scope is not None and scope.teardown_error is not None:
        click.echo(f"Error: {scope.teardown_error}", err=True)

    sys.exit(1)


def read_password() -> str:
    """Read a share password from the terminal, or one line from piped stdin."""
    click.echo("Enter password (passing via stdin is also ok):", err=True)

    if sys.stdin.isatty():
        password = getpass.getpass("")
    else:
        password = sys.stdin.readline().rstrip("\r\n")

    if not password:
        raise ValidationError("Failed to read password")
    return password


def share_table(shares: Sequence[Share]) -> Table:
    """Build a borderless table of name, encryption and description."""
    table = Table(box=None, show_header=False, pad_edge=False)
    table.add_column("Name")
    table.add_column("Encryption")
    table.add_column("Description")
    for share in shares:
        table.add_row(Text(share.name), Text(share.encryption), Text(share.description))
    return table


class NasContext:
    """Context object for sharing NAS connection settings across commands."""

    def __init__(
        self,
        base_url: Optional[str],
        username: Optional[str],
        password: Optional[str],
        insecure: bool = False,
    ):
        self.base_url = base_url
        self.username = username
        self.password = password
        self.insecure = insecure

    def check_config(self) -> None:
        """Fail with a usage error if a connection setting is missing."""
        missing = [
            f"{option} (or {envvar})"
            for option, envvar, value in (
                ("--base-url", "SYNO_BASE_URL", self.base_url),
                ("--user", "SYNO_USER", self.username),
                ("--password", "SYNO_PASSWORD", self.password),
            )
            if not value
        ]
        if missing:
            raise click.UsageError(f"Missing connection settings: {', '.join(missing)}")

    def make_transport(self) -> Transport:
        return Transport(self.base_url, verify=not self.insecure)

    def run(self, action: Callable[[ShareService], None]) -> None:
        """
        Run an action inside an authenticated session.

        Logs in, runs the action and always logs out. Any error ends the
        process with status 1 after it has been reported.
        """
        scope: Optional[SessionScope] = None
        try:
            with self.make_transport() as transport:
                session = SessionManager(transport)
                scope = session.scope(self.username, self.password)
                with scope:
                    action(ShareService(transport, session))
        except SynoCliException as e:
            exit_with_error(e, scope)


@click.group()
@click.option(
    "--base-url",
    envvar="SYNO_BASE_URL",
    show_envvar=True,
    help="NAS address, e.g. https://nas.example.net:5001",
)
@click.option(
    "--user",
    envvar="SYNO_USER",
    show_envvar=True,
    help="DSM account name",
)
@click.option(
    "--password",
    envvar="SYNO_PASSWORD",
    show_envvar=True,
    help="DSM account password",
)
@click.option(
    "--insecure",
    envvar="SYNO_INSECURE",
    is_flag=True,
    help="Do not verify the NAS TLS certificate",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log API calls to stderr",
)
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: Optional[str],
    user: Optional[str],
    password: Optional[str],
    insecure: bool,
    verbose: bool,
) -> None:
    """synocli - Manage encrypted shares on a Synology NAS."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = NasContext(base_url, user, password, insecure=insecure)


@cli.command(name="list")
@click.pass_obj
def list_shares(nas_ctx: NasContext) -> None:
    """List shares."""
    nas_ctx.check_config()

    def action(shares: ShareService) -> None:
        result: List[Share] = shares.list_shares()
        if result:
            Console(highlight=False).print(share_table(result))

    nas_ctx.run(action)


@cli.command()
@click.argument("share_name")
@click.pass_obj
def lock(nas_ctx: NasContext, share_name: str) -> None:
    """Lock an encrypted share."""
    nas_ctx.check_config()

    def action(shares: ShareService) -> None:
        shares.lock_share(share_name)
        click.echo(f"Share '{share_name}' locked.")

    nas_ctx.run(action)


@cli.command()
@click.argument("share_name", required=False)
@click.option("--batch", is_flag=True, help="Read a JSON list of shares and passwords from stdin")
@click.pass_obj
def unlock(nas_ctx: NasContext, share_name: Optional[str], batch: bool) -> None:
    """Unlock one encrypted share, or several with --batch."""
    if not share_name and not batch:
        raise click.UsageError("Please provide either a share name or --batch. Nothing to do.")
    if share_name and batch:
        raise click.UsageError("Cannot use a share name together with --batch")

    nas_ctx.check_config()

    # Manifest and password are read before login so bad input never opens a session
    try:
        if batch:
            requests = load_manifest(click.get_binary_stream("stdin"))
        else:
            requests = [UnlockRequest(share_name, read_password())]
    except SynoCliException as e:
        exit_with_error(e)

    if not requests:
        click.echo("Nothing to unlock.")
        return

    def action(shares: ShareService) -> None:
        for request in BatchCoordinator(shares).unlock_all(requests):
            click.echo(f"Share '{request.share_name}' unlocked.")

    nas_ctx.run(action)


@cli.command()
@click.pass_obj
def logout(nas_ctx: NasContext) -> None:
    """Open and close a session, logging out of the NAS."""
    nas_ctx.check_config()
    nas_ctx.run(lambda shares: None)
    click.echo("Logged out.")


def main() -> None:
    """Main entry point for the CLI application."""
    cli()


if __name__ == "__main__":
    main()
