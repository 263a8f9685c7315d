"""
CLI commands for beamcomplete.

Main entry point: `beamcomplete serve` for editors, or the one-shot
`match` / `complete` commands for checking a file from the terminal.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from beamcomplete.cli import ui
from beamcomplete.config import Config


def _load_buffer(file: str, line: int, column: int):
    """Read a file and build completion parameters for a 1-based line/column."""
    from beamcomplete.completion.parameters import CompletionParametersBuilder

    content = Path(file).read_text(encoding="utf-8")
    builder = CompletionParametersBuilder()
    return builder.build_at(file, content, line - 1, column - 1)


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="DEBUG, INFO, WARNING or ERROR (default: BEAMCOMPLETE_LOG_LEVEL)",
)
@click.pass_context
def main(ctx, log_level: str):
    """
    beamcomplete - Model completions for Apache Beam pipelines

    Usage:
        beamcomplete serve                              # JSON-RPC over stdio
        beamcomplete match Pipeline.java -l 12 -c 30    # Does the caret trigger?
        beamcomplete complete Pipeline.java -l 12 -c 30
    """
    load_dotenv()

    config = Config()
    if log_level:
        config.log_level = log_level

    ctx.obj = config


@main.command()
@click.option("--model", "-m", default=None, help="Model alias, repo id or endpoint URL")
@click.option("--timeout", default=None, type=float, help="Seconds to wait for the endpoint")
@click.pass_obj
def serve(config: Config, model: str, timeout: float):
    """Run the completion service on stdin/stdout"""
    from beamcomplete.completion.service import create_service
    from beamcomplete.utils.logger import logger

    if model:
        config.model = model
    if timeout:
        config.timeout = timeout

    logger.configure(level=config.log_level, log_dir=config.log_dir)
    service = create_service(config)
    service.run()


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--line", "-l", required=True, type=int, help="1-based caret line")
@click.option("--column", "-c", required=True, type=int, help="1-based caret column")
def match(file: str, line: int, column: int):
    """Report whether the caret triggers a Beam completion"""
    from beamcomplete.code_intelligence.java_resolver import JavaSymbolResolver
    from beamcomplete.completion.patterns import is_after_apply_call

    parameters = _load_buffer(file, line, column)
    matched = is_after_apply_call(parameters.position, JavaSymbolResolver(parameters.parsed))

    ui.show_caret_context(parameters.original_text, parameters.offset)
    ui.show_match(matched, parameters.prefix)
    sys.exit(0 if matched else 1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--line", "-l", required=True, type=int, help="1-based caret line")
@click.option("--column", "-c", required=True, type=int, help="1-based caret column")
@click.option("--model", "-m", default=None, help="Model alias, repo id or endpoint URL")
@click.pass_obj
def complete(config: Config, file: str, line: int, column: int, model: str):
    """Run the completion contributor once and print its suggestions"""
    from beamcomplete.completion.contributor import BeamCompletionContributor
    from beamcomplete.completion.results import CompletionResultSet
    from beamcomplete.completion.session import CompletionSession
    from beamcomplete.inference import HuggingFaceInferenceClient, InferenceError

    if model:
        config.model = model

    parameters = _load_buffer(file, line, column)
    ui.show_caret_context(parameters.original_text, parameters.offset)

    client = HuggingFaceInferenceClient(
        model=config.model,
        api_key=config.api_key,
        timeout=config.timeout,
        parameters=config.parameters(),
    )

    with CompletionSession(client) as session:
        contributor = BeamCompletionContributor(session, parameters=config.parameters())
        result = CompletionResultSet(prefix=parameters.prefix)
        try:
            with ui.console.status(f"Querying {client.model_url}..."):
                matched = contributor.fill_completion_variants(parameters, result)
        except InferenceError as e:
            ui.print_error(str(e))
            sys.exit(1)

    ui.show_match(matched, parameters.prefix)
    if matched:
        ui.show_suggestions(result)
    sys.exit(0 if matched else 1)


@main.command()
@click.option("--prefix", "-p", default="", help="Only names starting with this prefix")
def transforms(prefix: str):
    """List Beam Java SDK transform names"""
    from beamcomplete.beam.sdk import match_transforms

    names = match_transforms(prefix)
    ui.console.print(f"\n[bold]Beam Java SDK transforms[/bold] ({len(names)}):\n")
    for name in names:
        ui.console.print(f"  • {name}")
    ui.console.print()


@main.command()
@click.option("--ping", is_flag=True, help="Also check that the model endpoint is reachable")
@click.pass_obj
def check(config: Config, ping: bool):
    """Check environment and API key"""
    from beamcomplete.inference import HuggingFaceInferenceClient, InferenceConfig

    ui.console.print("\n[bold]Environment Check:[/bold]\n")

    api_key = config.api_key
    masked = (api_key[:6] + "..." + api_key[-4:]) if api_key and len(api_key) > 12 else ("***" if api_key else None)
    checks = {
        InferenceConfig.API_KEY_ENV: masked,
        "Model URL": config.model_url,
        "Temperature": str(config.temperature),
        "Sampling": str(config.do_sample).lower(),
        "Timeout": f"{config.timeout}s",
    }

    for key, value in checks.items():
        status = "✓" if value else "✗"
        color = "green" if value else "red"
        ui.console.print(f"  [{color}]{status}[/{color}] {key}: {value or '(not set)'}")

    if ping:
        ui.console.print("\n[bold]Endpoint:[/bold]")
        if HuggingFaceInferenceClient.is_endpoint_reachable(config.model_url):
            ui.console.print("  [green]✓[/green] Reachable")
        else:
            ui.console.print("  [red]✗[/red] Not reachable")

    ui.console.print()


@main.command()
def models():
    """List registered model aliases"""
    from beamcomplete.inference import InferenceConfig

    ui.console.print("\n[bold]Model aliases:[/bold]\n")
    for alias, url in InferenceConfig.list_available_models().items():
        ui.console.print(f"  [cyan]{alias}[/cyan] → {url}")
    ui.console.print()


@main.command()
def version():
    """Show version information"""
    from beamcomplete import __version__

    ui.console.print(f"\n[bold]beamcomplete[/bold] v{__version__}\n")
    ui.console.print("Model completions for Apache Beam pipelines\n")


if __name__ == "__main__":
    main()
