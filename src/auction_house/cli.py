"""CLI entry point for the auction house."""

from __future__ import annotations

import click


@click.group()
def main() -> None:
    """Timed auction house."""


@main.command()
@click.option("--config", default="configs/auction.toml", help="Config file path")
@click.option("--host", default=None, help="Bind address override")
@click.option("--port", default=None, type=int, help="Port override")
@click.option("--data-file", default=None, help="Data file override")
def serve(config: str, host: str | None, port: int | None, data_file: str | None) -> None:
    """Run the auction HTTP server."""
    from .main import serve as run_server

    overrides: dict = {}
    if host:
        overrides.setdefault("server", {})["host"] = host
    if port:
        overrides.setdefault("server", {})["port"] = port
    if data_file:
        overrides.setdefault("persistence", {})["data_file"] = data_file

    run_server(config_path=config, overrides=overrides)


@main.command("set-admin")
@click.option("--config", default="configs/auction.toml", help="Config file path")
@click.option("--username", required=True, help="New admin username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True,
              help="New admin password")
def set_admin(config: str, username: str, password: str) -> None:
    """Rotate admin credentials in the data file."""
    from .core.config import load_settings
    from .core.errors import InvalidCredentials
    from .main import build_engine

    engine = build_engine(load_settings(config_path=config))
    try:
        engine.rotate_credentials(username, password)
    except InvalidCredentials as exc:
        raise click.BadParameter(str(exc)) from exc
    click.echo(f"Admin credentials updated for {username!r}")


@main.command("list")
@click.option("--config", default="configs/auction.toml", help="Config file path")
def list_auctions(config: str) -> None:
    """Print every auction with its state and current bid."""
    from .core.config import load_settings
    from .main import build_engine

    engine = build_engine(load_settings(config_path=config))
    now = engine.clock.now()
    auctions = engine.list_auctions()
    if not auctions:
        click.echo("No auctions.")
        return
    for auction in auctions:
        click.echo(
            f"{auction.slug:<32} {auction.state(now).value:<8} "
            f"{auction.current_bid:>12} bids={len(auction.bids)}"
        )


if __name__ == "__main__":
    main()
