"""CLI interface for chatsum."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from chatsum.utils.logging import setup_logging

console = Console()


def _run_async(coro):
    """Run an async function from sync CLI."""
    return asyncio.run(coro)


def _load_app_config(config_path: Optional[str], api_keys: tuple[str, ...]):
    """Load the config file (or defaults) and apply CLI key overrides.

    Resolution order for keys:
      1. ``--api-key`` flags (repeatable, order preserved)
      2. ``gateway.api_keys`` in the config file
      3. The environment variable named by ``gateway.api_keys_env``
      4. Interactive prompt
    """
    from chatsum.config import AppConfig, load_config
    from chatsum.llm.credentials import parse_credentials

    config = load_config(Path(config_path)) if config_path else AppConfig()
    if api_keys:
        config.gateway.api_keys = list(api_keys)

    if not config.gateway.api_keys:
        hint = (
            f" (or set {config.gateway.api_keys_env})"
            if config.gateway.api_keys_env
            else ""
        )
        raw = click.prompt(
            f"Enter API key(s) for {config.gateway.provider}{hint}",
            hide_input=True,
        )
        config.gateway.api_keys = parse_credentials(raw)
    return config


@click.group()
@click.version_option(version="0.1.0")
def main():
    """chatsum: LLM summaries of group chat transcripts."""
    pass


@main.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option(
    "--style",
    "-s",
    type=click.Choice(["default", "detailed", "brief", "bullet", "timeline"]),
    default=None,
    help="Summary style (overrides config)",
)
@click.option("--prompt-file", type=click.Path(exists=True, dir_okay=False), help="Custom prompt containing {{messages}}")
@click.option("--api-key", "-k", "api_keys", multiple=True, help="API key; repeat for rotation")
@click.option("--raw", is_flag=True, help="Print plain text instead of rendered markdown")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def summarize(
    transcript: str,
    config_path: Optional[str],
    style: Optional[str],
    prompt_file: Optional[str],
    api_keys: tuple[str, ...],
    raw: bool,
    verbose: bool,
):
    """Summarize a JSON/YAML list of chat messages."""
    setup_logging(verbose)

    async def _summarize():
        from chatsum.errors import ChatSumError
        from chatsum.llm.gateway import CompletionGateway
        from chatsum.summarizer.filters import MessageFilter
        from chatsum.summarizer.hierarchical import HierarchicalSummarizer
        from chatsum.summarizer.types import SummaryOptions, load_messages

        config = _load_app_config(config_path, api_keys)
        messages = load_messages(Path(transcript))
        kept = MessageFilter.from_config(config.filters).apply(messages)
        if len(kept) != len(messages):
            console.print(
                f"[dim]Filtered out {len(messages) - len(kept)} of "
                f"{len(messages)} messages[/dim]"
            )

        custom_prompt = config.summarizer.custom_prompt
        if prompt_file:
            custom_prompt = Path(prompt_file).read_text(encoding="utf-8")
        options = SummaryOptions(
            custom_prompt=custom_prompt,
            summary_style=style or config.summarizer.default_style,
        )

        gateway = CompletionGateway.from_config(config.gateway)
        summarizer = HierarchicalSummarizer.from_config(
            gateway, config.summarizer
        )
        try:
            return await summarizer.summarize(kept, options)
        except ChatSumError as e:
            message = getattr(e, "user_message", None) or str(e)
            console.print(f"[red]✗[/red] {escape(message)}")
            return None

    summary = _run_async(_summarize())
    if summary is None:
        raise SystemExit(1)
    if raw:
        click.echo(summary)
    else:
        console.print(Markdown(summary))


@main.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option("--api-key", "-k", "api_keys", multiple=True, help="API key to list models for")
@click.option("--verbose", "-v", is_flag=True)
def models(config_path: Optional[str], api_keys: tuple[str, ...], verbose: bool):
    """List the models visible to the first configured API key."""
    setup_logging(verbose)

    async def _models():
        from chatsum.errors import ProviderFailure
        from chatsum.llm.credentials import mask_credential
        from chatsum.llm.factory import LLMFactory

        config = _load_app_config(config_path, api_keys)
        key = config.gateway.api_keys[0]
        backend = LLMFactory.create_for_credentials(
            config.gateway.provider,
            [key],
            base_url=config.gateway.base_url,
            timeout_seconds=config.gateway.timeout_seconds,
        )[0]
        console.print(f"Using API key: {mask_credential(key)}")
        try:
            names = await backend.list_models()
        except ProviderFailure as e:
            console.print(f"[red]✗ Could not list models:[/red] {escape(str(e))}")
            return False

        configured = set(config.gateway.models)
        table = Table(title=f"{config.gateway.provider} models")
        table.add_column("Model", style="cyan")
        table.add_column("Family")
        table.add_column("In chain", style="green")
        for name in names:
            short = name.removeprefix("models/")
            family = "flash" if "flash" in short else "pro" if "pro" in short else ""
            table.add_row(name, family, "✓" if short in configured else "")
        console.print(table)
        console.print(f"Total models found: {len(names)}")
        return True

    if not _run_async(_models()):
        raise SystemExit(1)


@main.command("check-keys")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option("--api-key", "-k", "api_keys", multiple=True, help="API key; repeat to check several")
@click.option("--verbose", "-v", is_flag=True)
def check_keys(config_path: Optional[str], api_keys: tuple[str, ...], verbose: bool):
    """Validate every configured API key against the first model."""
    setup_logging(verbose)

    async def _check():
        from chatsum.llm.credentials import looks_like_api_key, mask_credential
        from chatsum.llm.factory import LLMFactory

        config = _load_app_config(config_path, api_keys)
        model = config.gateway.models[0]
        backends = LLMFactory.create_for_credentials(
            config.gateway.provider,
            config.gateway.api_keys,
            base_url=config.gateway.base_url,
            timeout_seconds=config.gateway.timeout_seconds,
        )
        failures = 0
        console.print(f"[bold]Checking keys against {model}:[/bold]")
        for key, backend in zip(config.gateway.api_keys, backends):
            label = mask_credential(key)
            if not looks_like_api_key(key):
                console.print(f"  [red]✗[/red] {label}: malformed key")
                failures += 1
                continue
            if await backend.health_check(model):
                console.print(f"  [green]✓[/green] {label}")
            else:
                console.print(f"  [red]✗[/red] {label}: rejected")
                failures += 1
        return failures

    if _run_async(_check()):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
