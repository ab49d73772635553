"""Main CLI entry point for scriptgate."""

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from scriptgate import __version__
from scriptgate.config.settings import AnalyzerKind, Language, Settings
from scriptgate.core.artifacts import TestCase, collect_tests
from scriptgate.core.gate import Gate
from scriptgate.core.pipeline import ValidationPipeline
from scriptgate.exceptions import ScriptGateError
from scriptgate.models.report import AnalysisStatus, TestOutcome, ValidationReport
from scriptgate.models.script import ScriptDescriptor


console = Console()
err_console = Console(stderr=True)

ANALYZER_CHOICES = [kind.value for kind in AnalyzerKind]

SUFFIX_LANGUAGES = {
    ".sh": Language.BASH,
    ".bash": Language.BASH,
    ".py": Language.PYTHON3,
    ".ps1": Language.POWERSHELL,
}

STATUS_STYLES = {
    AnalysisStatus.PASS: "green",
    AnalysisStatus.FAIL: "red",
    AnalysisStatus.SKIPPED: "yellow",
}


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", type=str, default=None, help="Override the configured log level")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """scriptgate - build-time validation for shell-like scripts.

    Runs syntax, lint, strict mode, function dependency and variable usage
    checks over scripts and fails the build step when a check fails.
    """
    ctx.ensure_object(dict)
    settings = Settings()
    configure_logging(log_level or settings.log_level)
    ctx.obj["settings"] = settings
    ctx.obj["console"] = console


def detect_language(path: Path, text: str) -> str:
    """Guess a script's language from its suffix or shebang, defaulting to bash."""
    language = SUFFIX_LANGUAGES.get(path.suffix.lower())
    if language is not None:
        return language.value

    first_line = text.splitlines()[0] if text else ""
    if first_line.startswith("#!"):
        if "python" in first_line:
            return Language.PYTHON3.value
        if "pwsh" in first_line or "powershell" in first_line:
            return Language.POWERSHELL.value
    return Language.BASH.value


@cli.command()
@click.argument("script_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", "-n", type=str, help="Script name (defaults to the file stem)")
@click.option("--language", "-l", type=str, help="Script language (detected when omitted)")
@click.option(
    "--enable",
    "-e",
    multiple=True,
    type=click.Choice(ANALYZER_CHOICES),
    help="Analyzers to run instead of the language defaults",
)
@click.option(
    "--disable",
    "-d",
    multiple=True,
    type=click.Choice(ANALYZER_CHOICES),
    help="Analyzers to switch off (syntax cannot be disabled)",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["summary", "json"]),
    default="summary",
    help="Output format",
)
@click.option("--no-cache", is_flag=True, help="Disable result caching")
@click.pass_context
def check(
    ctx: click.Context,
    script_file: Path,
    name: Optional[str],
    language: Optional[str],
    enable: Tuple[str, ...],
    disable: Tuple[str, ...],
    format: str,
    no_cache: bool,
) -> None:
    """Validate a single script file.

    Exits with status 1 when any analyzer fails.
    """
    settings: Settings = ctx.obj["settings"]
    if no_cache:
        settings = settings.model_copy(update={"cache_results": False})

    try:
        text = script_file.read_text(encoding="utf-8")
        descriptor = ScriptDescriptor(
            name=name or script_file.stem,
            language=language or detect_language(script_file, text),
            text=text,
            enabled_analyzers=[AnalyzerKind(k) for k in enable] or None,
            disabled_analyzers=[AnalyzerKind(k) for k in disable],
        )
        script = descriptor.to_script()
    except (OSError, ValidationError, ScriptGateError) as e:
        err_console.print(f"[red]Error:[/red] {e}", style="bold red")
        ctx.exit(2)

    pipeline = ValidationPipeline(settings=settings)
    report = asyncio.run(pipeline.run(script, descriptor.analyzer_config()))

    if format == "json":
        click.echo(report.model_dump_json(indent=2))
    else:
        display_report(report)

    ctx.exit(0 if report.passed else 1)


def load_manifest(manifest: Path) -> List[ScriptDescriptor]:
    """Read a JSON manifest: a list of descriptors or ``{"scripts": [...]}``."""
    data = json.loads(manifest.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("scripts", [])
    return TypeAdapter(List[ScriptDescriptor]).validate_python(data)


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for built artifacts",
)
@click.option(
    "--report",
    "report_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write all reports as JSON to this file",
)
@click.option("--run-tests/--no-run-tests", default=False, help="Re-run generated tests on the artifacts")
@click.pass_context
def build(
    ctx: click.Context,
    manifest: Path,
    output_dir: Optional[Path],
    report_path: Optional[Path],
    run_tests: bool,
) -> None:
    """Validate and build every script listed in MANIFEST.

    Exits with status 1 when the gate or a generated test fails.
    """
    settings: Settings = ctx.obj["settings"]
    if output_dir is not None:
        settings = settings.model_copy(update={"build_dir": output_dir})

    try:
        descriptors = load_manifest(manifest)
        pipeline = ValidationPipeline(settings=settings)
        outputs = asyncio.run(pipeline.build_all(descriptors, base_dir=manifest.parent))
    except (OSError, json.JSONDecodeError, ValidationError, ScriptGateError) as e:
        err_console.print(f"[red]Error:[/red] {e}", style="bold red")
        ctx.exit(2)

    gate = Gate(output.report for output in outputs)
    for output in outputs:
        display_report(output.report)
        console.print(f"  artifact: [cyan]{output.artifact.path}[/cyan]")

    if report_path is not None:
        payload = [output.report.model_dump(mode="json") for output in outputs]
        report_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        console.print(f"\n[green]✓[/green] Report saved to: {report_path}")

    tests_ok = True
    if run_tests:
        tests = collect_tests(output.tests for output in outputs)
        outcomes = asyncio.run(run_test_cases(tests))
        display_test_outcomes(outcomes)
        tests_ok = all(outcome == TestOutcome.PASS for outcome in outcomes.values())

    style = "green" if gate.passed else "red"
    console.print()
    console.print(gate.summary(), style=f"bold {style}", highlight=False)

    ctx.exit(0 if gate.passed and tests_ok else 1)


async def run_test_cases(tests: Dict[str, TestCase]) -> Dict[str, TestOutcome]:
    """Run generated test cases one after another, in id order."""
    outcomes: Dict[str, TestOutcome] = {}
    for test_id in sorted(tests):
        outcomes[test_id] = await tests[test_id].run()
    return outcomes


def display_report(report: ValidationReport) -> None:
    """Display a validation report in the terminal."""
    style = "green" if report.passed else "red"
    console.print(
        f"\n[bold]{report.script_id}[/bold] ({report.language}): "
        f"[{style}]{report.overall_status.value.upper()}[/{style}]"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Analyzer", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Findings", justify="right")

    for result in report.results:
        color = STATUS_STYLES[result.status]
        table.add_row(
            result.analyzer_kind.value,
            f"[{color}]{result.status_label}[/{color}]",
            str(len(result.findings)),
        )

    console.print(table)

    for result in report.results:
        for finding in result.findings:
            console.print(f"  [dim]{result.analyzer_kind.value}[/dim] {finding.format()}", highlight=False)


def display_test_outcomes(outcomes: Dict[str, TestOutcome]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Test", style="cyan")
    table.add_column("Outcome", justify="center")
    for test_id, outcome in outcomes.items():
        color = "green" if outcome == TestOutcome.PASS else "red"
        table.add_row(test_id, f"[{color}]{outcome.value}[/{color}]")
    console.print(table)


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """List external tools and whether they are installed."""
    settings: Settings = ctx.obj["settings"]

    console.print("\n[bold]External Tools:[/bold]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tool", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Executable")
    table.add_column("Timeout", justify="right")

    for tool_name, tool_config in settings.tools.items():
        resolved = shutil.which(tool_config.executable)
        if not tool_config.enabled:
            status = "[red]Disabled[/red]"
        elif resolved:
            status = "[green]Available[/green]"
        else:
            status = "[yellow]Not found[/yellow]"
        table.add_row(
            tool_name,
            status,
            resolved or tool_config.executable,
            f"{tool_config.timeout}s" if tool_config.timeout else "-",
        )

    console.print(table)


if __name__ == "__main__":
    cli()
