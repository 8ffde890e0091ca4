"""
Main CLI entry point for the DeFi database fetchers.
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console

from config import Config
from defidb.fetchers import (
    fetch_assets,
    fetch_gauge_apy,
    fetch_price_per_share,
    fetch_strategy_descriptions,
    fetch_vault_tokens,
    fetch_vaults,
)
from defidb.price_feed import PriceFeed
from defidb.rpc import ChainClient, build_clients
from defidb.utils import setup_logging

console = Console()


def _run_job(name: str, job) -> None:
    """Run one job; any failure is logged and ends the process with status 1."""
    try:
        job()
    except Exception as e:
        console.print(f"[red]❌ {name} failed: {e}[/red]")
        logging.exception(f"{name} failed")
        sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Config.DATA_DIR,
    show_default=True,
    help="Database root directory",
)
@click.pass_context
def cli(ctx, debug, data_dir):
    """DeFi database fetchers - refresh vault, asset and gauge data."""
    log_level = "DEBUG" if debug else Config.LOG_LEVEL
    setup_logging(log_level, Config.LOG_FILE)

    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["chains"] = Config.chain_endpoints()


@cli.command()
@click.pass_context
def check(ctx):
    """Validate configuration and test RPC connections."""
    errors = Config.validate()
    if errors:
        console.print("[bold red]Configuration errors:[/bold red]")
        for error in errors:
            console.print(f"  ❌ {error}")
        sys.exit(1)

    console.print("✅ Configuration valid")

    failed = False
    for chain_id, chain in ctx.obj["chains"].items():
        try:
            block = ChainClient(chain).get_latest_block()
            console.print(f"✅ Connected to {chain.name} (block: {block})")
        except Exception as e:
            console.print(f"[red]❌ {chain.name} RPC connection failed: {e}[/red]")
            failed = True

    if failed:
        sys.exit(1)


@cli.command("gauge-apy")
@click.pass_context
def gauge_apy(ctx):
    """Compute gauge reward APRs and archive yesterday's snapshot."""
    chains = ctx.obj["chains"]
    _run_job(
        "gauge-apy",
        lambda: fetch_gauge_apy.run(ctx.obj["data_dir"], build_clients(chains), PriceFeed(chains)),
    )


@cli.command()
@click.pass_context
def vaults(ctx):
    """Refresh vault registry data."""
    _run_job("vaults", lambda: fetch_vaults.run(ctx.obj["data_dir"], build_clients(ctx.obj["chains"])))


@cli.command("vault-tokens")
@click.pass_context
def vault_tokens(ctx):
    """Record metadata of new vault share tokens."""
    _run_job(
        "vault-tokens",
        lambda: fetch_vault_tokens.run(ctx.obj["data_dir"], build_clients(ctx.obj["chains"])),
    )


@cli.command("price-per-share")
@click.pass_context
def price_per_share(ctx):
    """Append today's vault price-per-share observations."""
    _run_job(
        "price-per-share",
        lambda: fetch_price_per_share.run(ctx.obj["data_dir"], build_clients(ctx.obj["chains"])),
    )


@cli.command()
@click.pass_context
def assets(ctx):
    """Grow the asset lists."""
    _run_job("assets", lambda: fetch_assets.run(ctx.obj["data_dir"], build_clients(ctx.obj["chains"])))


@cli.command("strategy-descriptions")
@click.pass_context
def strategy_descriptions(ctx):
    """Describe strategies used by vaults."""
    _run_job(
        "strategy-descriptions",
        lambda: fetch_strategy_descriptions.run(ctx.obj["data_dir"], build_clients(ctx.obj["chains"])),
    )


@cli.command("all")
@click.pass_context
def run_all(ctx):
    """Run every job once, vaults first so later jobs see new vaults."""
    data_dir = ctx.obj["data_dir"]
    chains = ctx.obj["chains"]
    clients = build_clients(chains)

    jobs = [
        ("vaults", lambda: fetch_vaults.run(data_dir, clients)),
        ("vault-tokens", lambda: fetch_vault_tokens.run(data_dir, clients)),
        ("price-per-share", lambda: fetch_price_per_share.run(data_dir, clients)),
        ("strategy-descriptions", lambda: fetch_strategy_descriptions.run(data_dir, clients)),
        ("assets", lambda: fetch_assets.run(data_dir, clients)),
        ("gauge-apy", lambda: fetch_gauge_apy.run(data_dir, clients, PriceFeed(chains))),
    ]
    for name, job in jobs:
        console.print(f"\n[bold]{name}[/bold]")
        _run_job(name, job)

    console.print("\n[bold green]All jobs complete![/bold green]")


if __name__ == "__main__":
    cli()
