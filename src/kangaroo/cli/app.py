"""CLI for Kangaroo - run the bot's commands from the terminal."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from kangaroo.responses import Response

app = typer.Typer(
    name="kangaroo",
    help="Custodial Layer 2 tipping bot - preview and confirm transfers from the terminal.",
    no_args_is_help=True,
)
console = Console()

_config_path: Optional[Path] = None
_selected_user: str = "cli"


def _version_callback(value: bool):
    if value:
        from kangaroo import __version__
        console.print(f"kangaroo {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to kangaroo.yaml",
        envvar="KANGAROO_CONFIG",
    ),
    user: str = typer.Option(
        "cli",
        "--user",
        "-u",
        help="User id the command runs as",
        envvar="KANGAROO_USER",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Custodial Layer 2 tipping bot - preview and confirm transfers from the terminal."""
    global _config_path, _selected_user
    _config_path = config
    _selected_user = user


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _load_config():
    from kangaroo.config import configure_logging, load_or_default

    config = load_or_default(_config_path)
    configure_logging(config.logging)
    return config


def _render(response: Response) -> None:
    parts = []
    description = response.description()
    if description:
        parts.append(description)
    for name, value in response.fields():
        parts.append(f"[bold]{name}[/bold]\n{value}")
    console.print(Panel(
        "\n\n".join(parts),
        title=response.get_title(),
        border_style="red" if response.is_error else "cyan",
    ))


def _dispatch(name: str, options: dict[str, Any]) -> None:
    """Run one bot command and print its response.

    Any response, error responses included, exits 0.  A fault the bot
    could not turn into a response exits 1.
    """
    from kangaroo.bot import Kangaroo
    from kangaroo.strings import get_string

    config = _load_config()

    async def _handle():
        bot = await Kangaroo.load(config)
        try:
            return await bot.dispatcher.handle_options(name, _selected_user, options)
        finally:
            await bot.shutdown()

    try:
        response = _run(_handle())
    except Exception as e:
        console.print(f"[red]{get_string('serverError')}[/red] {e}")
        raise typer.Exit(1)
    _render(response)


def _confirm_option(value: Optional[str]) -> dict[str, str]:
    if value is None:
        return {}
    if value.lower() != "confirm":
        raise typer.BadParameter(f"expected 'confirm', got '{value}'")
    return {"confirm": value}


# ------------------------------------------------------------------
# Bot commands
# ------------------------------------------------------------------


@app.command()
def balance(
    ticker: Optional[str] = typer.Argument(None, help="Token ticker; all tokens if omitted"),
):
    """Show your balance in one token or all of them."""
    _dispatch("balance", {"ticker": ticker} if ticker else {})


@app.command()
def send(
    amount: str = typer.Argument(help="Amount to send (e.g. 0.2)"),
    ticker: str = typer.Argument(help="Token ticker (e.g. ETH)"),
    user: str = typer.Argument(help="Recipient user id, @mention or 0x address"),
    confirm: Optional[str] = typer.Argument(None, help="Pass 'confirm' to execute"),
):
    """Preview a transfer, or execute it with 'confirm'."""
    options = {"amount": amount, "ticker": ticker, "user": user}
    options.update(_confirm_option(confirm))
    _dispatch("send", options)


@app.command()
def unlock(
    ticker: Optional[str] = typer.Argument(None, help="Token to pay the unlock fee in"),
    confirm: Optional[str] = typer.Argument(None, help="Pass 'confirm' to execute"),
):
    """Explain unlocking, preview the fee, or unlock with 'confirm'."""
    options: dict[str, Any] = {"ticker": ticker} if ticker else {}
    options.update(_confirm_option(confirm))
    _dispatch("unlock", options)


@app.command()
def tokens():
    """List supported tokens."""
    _dispatch("tokens", {})


@app.command("help")
def help_():
    """Introduction to Kangaroo."""
    _dispatch("help", {})


# ------------------------------------------------------------------
# Operator commands
# ------------------------------------------------------------------


@app.command()
def address():
    """Show the wallet address of the selected user, creating it if needed."""
    from kangaroo.bot import Kangaroo

    config = _load_config()

    async def _address():
        bot = await Kangaroo.load(config)
        try:
            wallet = await bot.wallets.get_or_create_wallet(_selected_user)
            return wallet.address
        finally:
            await bot.shutdown()

    addr = _run(_address())
    console.print(Panel(
        f"[cyan]{addr}[/cyan]\n\n[dim]Deposit to this address on Layer 2.[/dim]",
        title=f"Wallet of {_selected_user}",
    ))


@app.command("add-token")
def add_token(
    ticker: str = typer.Argument(help="Token ticker (e.g. USDC)"),
    name: str = typer.Argument(help="Display name (e.g. 'USD Coin')"),
    decimals: int = typer.Option(18, "--decimals", "-d", help="Decimal places"),
):
    """Register a token in the supported-token list."""
    from kangaroo.network.tokens import Token
    from kangaroo.storage.database import get_database
    from kangaroo.storage.store import SqliteStore

    config = _load_config()

    async def _add():
        db = get_database(config.storage.db_path)
        await db.connect()
        store = SqliteStore(db)
        try:
            await store.add_token(Token(ticker=ticker, name=name, decimals=decimals))
        finally:
            await store.close()

    _run(_add())
    console.print(f"[green]Added {ticker.upper()} | {name}[/green]")


@app.command()
def init(
    path: Path = typer.Option(Path("kangaroo.yaml"), "--path", "-p", help="Where to write the config"),
    backend: str = typer.Option("simulated", "--backend", "-b", help="Network backend: simulated or rpc"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write a starter configuration file."""
    from kangaroo.config import default_config, save_config

    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    if backend not in ("simulated", "rpc"):
        raise typer.BadParameter("backend must be 'simulated' or 'rpc'")

    config = default_config()
    config.network.backend = backend
    save_config(config, path)
    console.print(Panel(
        f"Config written to [cyan]{path}[/cyan]\n\n"
        f"Set DISCORD_APPLICATION_ID, DISCORD_BOT_TOKEN and DISCORD_PUBLIC_KEY, then run 'kangaroo serve'.",
        title="Kangaroo initialized",
    ))


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to serve on"),
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind to"),
):
    """Start the interactions endpoint."""
    from kangaroo.config import load_or_default
    from kangaroo.server import run_server

    config = load_or_default(_config_path)
    if port is not None:
        config.server.port = port
    if host is not None:
        config.server.host = host
    console.print(
        f"[bold green]Serving interactions at "
        f"http://{config.server.host}:{config.server.port}{config.discord.interact_endpoint}[/bold green]"
    )
    run_server(config)
