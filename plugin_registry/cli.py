"""Plugin registry CLI — build, validate and inspect the plugin registry."""

from dataclasses import replace

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from plugin_registry import __version__

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Plugin Registry Builder.

    Discover plugin repositories by GitHub topic, validate their
    plugin.json manifests, and aggregate them into registry.json.
    """


# ── Build ────────────────────────────────────────────────────────────


@main.command()
@click.option("--topic", default=None, help="GitHub topic label to search for")
@click.option("--output", "-o", default=None, help="Path of the registry.json to write")
@click.option("--workers", "-w", default=None, type=click.IntRange(min=1), help="Concurrent manifest fetches")
@click.option("--config", "-c", "config_path", default=None, type=click.Path(exists=True, dir_okay=False), help="YAML config file")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def build(topic: str | None, output: str | None, workers: int | None, config_path: str | None, verbose: bool):
    """Build the registry from every repository tagged with the topic.

    Exits 1 if discovery fails and 2 if the registry cannot be written.
    Repositories without a valid manifest are skipped, not fatal.
    """
    from plugin_registry.config import load_config
    from plugin_registry.errors import RegistryBuildError
    from plugin_registry.log import configure_logging
    from plugin_registry.registry.assembler import RegistryAssembler
    from plugin_registry.registry.writer import write_registry
    from plugin_registry.sources.github import GitHubSource

    configure_logging(verbose)

    try:
        config = load_config(config_path)
        overrides = {
            k: v
            for k, v in {"topic": topic, "output_path": output, "workers": workers}.items()
            if v is not None
        }
        config = replace(config, **overrides)

        console.print(f"\n[bold blue]Registry[/] — Building from topic: {config.topic}\n")

        with GitHubSource(config) as source:
            assembler = RegistryAssembler(source, workers=config.workers)
            result = assembler.assemble(config.topic)

        path = write_registry(result.document, config.output_path)
    except RegistryBuildError as e:
        console.print(f"\n[red]Build failed:[/] {e}")
        raise SystemExit(e.exit_code)

    if result.skipped:
        table = Table(title=f"Skipped Repositories ({result.skipped_count})")
        table.add_column("Repository", style="cyan")
        table.add_column("Reason", style="yellow")
        table.add_column("Detail")
        for skipped in result.skipped:
            table.add_row(skipped.item.full_name, skipped.reason.value, skipped.detail)
        console.print(table)

    console.print(
        Panel(
            f"Accepted: {result.accepted_count}\n"
            f"Skipped:  {result.skipped_count}\n"
            f"Written to: {path}",
            title="Registry Build",
        )
    )


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False))
def validate(manifest_path: str):
    """Check a local plugin.json against the registry admission rules."""
    from plugin_registry.manifest.validator import validate_manifest_file

    result = validate_manifest_file(manifest_path)

    if result.accepted:
        console.print(f"  [green]v[/] {manifest_path} would be accepted")
        return

    console.print(f"  [red]x[/] {manifest_path}: {result.rejection.message}")
    raise SystemExit(1)


# ── List ─────────────────────────────────────────────────────────────


@main.command(name="list")
@click.option(
    "--registry-file",
    "-r",
    default=None,
    type=click.Path(dir_okay=False),
    help="registry.json to read (default: the configured output path)",
)
def list_entries(registry_file: str | None):
    """List the plugins in a built registry."""
    from plugin_registry.config import DEFAULT_OUTPUT_PATH
    from plugin_registry.registry.writer import load_registry

    path = registry_file or DEFAULT_OUTPUT_PATH
    try:
        document = load_registry(path)
    except FileNotFoundError:
        console.print(f"[yellow]No registry found at {path}. Run 'build' first.[/]")
        return

    if not document.plugins:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(document.plugins)} plugins, updated {document.updated_at})")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Stars", justify="right", style="green")
    table.add_column("Description")

    for entry in document.plugins:
        # Manifests only guarantee these are set, not that they are strings
        table.add_row(
            str(entry.name),
            str(entry.version),
            str(entry.type),
            str(entry.category or ""),
            str(entry.stars),
            str(entry.description)[:50],
        )

    console.print(table)


if __name__ == "__main__":
    main()
