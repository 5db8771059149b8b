import asyncio
import logging
import sys

import click

from config.manager import EnvironmentManager
from decompile_tools.errors import DecompileError, ToolNotFound
from decompile_tools.locator import ToolLocator
from decompile_tools.orchestrator import CancellationToken, Orchestrator
from decompile_tools.types import ProgressEvent, ResultShape


def _settings(env_file):
    return EnvironmentManager(env_file=env_file).load()


@click.group()
@click.option("--env-file", type=click.Path(dir_okay=False), help="Settings file to load instead of the usual .env lookup")
@click.option("--verbose", "-v", is_flag=True, help="Log tool output and process lifecycle")
@click.pass_context
def main(ctx, env_file, verbose):
    """Decompile binaries, jars and Android packages with external decompilers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = _settings(env_file)


@main.command()
@click.argument("artifact", type=click.Path(exists=True, dir_okay=False))
@click.option("--export", "-e", type=click.Path(file_okay=False), help="Also write the decompiled output to this directory")
@click.option("--quiet", "-q", is_flag=True, help="Do not print progress")
@click.pass_obj
def decompile(settings, artifact, export, quiet):
    """Decompile ARTIFACT and print the result."""
    orchestrator = Orchestrator(settings)
    total = 0.0

    def on_progress(event: ProgressEvent) -> None:
        nonlocal total
        total = min(100.0, total + event.increment_percent)
        if not quiet:
            click.echo(f"[{total:5.1f}%] {event.message}", err=True)

    async def run():
        token = CancellationToken()
        try:
            return await orchestrator.decompile(artifact, on_progress, token)
        except asyncio.CancelledError:
            token.cancel()
            raise
        finally:
            await orchestrator.drain()

    try:
        result = asyncio.run(run())
    except ToolNotFound as e:
        click.echo(f"Error: {e.message}", err=True)
        if e.install_command:
            click.echo(f"Install with: {' '.join(e.install_command)}", err=True)
        sys.exit(2)
    except DecompileError as e:
        click.echo(f"Error ({e.kind}): {e.message}", err=True)
        if e.diagnostic:
            click.echo(e.diagnostic, err=True)
        sys.exit(1)

    if result.shape == ResultShape.SINGLE and not export:
        click.echo(result.payload)
    else:
        click.echo(f"{result.virtual_path} ({result.source_language})")
        for uri in result.staged_files:
            click.echo(f"  {uri}")

    if export:
        written = orchestrator.vfs.export(result.virtual_path, export)
        click.echo(f"Exported {len(written)} files to {export}", err=True)


@main.command()
@click.argument("tool", type=click.Choice(sorted(EnvironmentManager.TOOL_PATH_SETTINGS)))
@click.pass_obj
def locate(settings, tool):
    """Print the binary that would be used for TOOL."""
    try:
        click.echo(ToolLocator(settings).resolve(tool))
    except ToolNotFound as e:
        click.echo(e.message, err=True)
        sys.exit(2)


if __name__ == "__main__":
    main()
