"""Main CLI interface for vuln-tree."""

import asyncio
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from .. import __version__
from ..config import AnalysisConfig
from ..core.exceptions import VulnTreeError
from ..core.models import TARGET_PLATFORM
from ..core.resolver import validate_package_name
from ..core.walker import resolve_spec
from ..osv.online import OSVOnlineClient
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..registry.offline import LocalRegistrySource
from ..registry.online import NpmRegistryClient
from ..runner import analyze_vulnerability_tree
from ..utils.logging import get_logger, setup_logging
from ..utils.performance import PerformanceMonitor

app = typer.Typer(
    name="vuln-tree",
    help="Resolve an npm package's dependency tree and report the known vulnerabilities in it",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")


@app.command()
def analyze(
    package: str = typer.Argument(..., help="npm package name"),
    version: str = typer.Argument("latest", help="Version, range or dist-tag"),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Analysis deadline in seconds; a partial result is reported when it elapses"
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Maximum concurrent registry and OSV requests"
    ),
    target_os: Optional[str] = typer.Option(None, "--os", help="Target operating system"),
    target_cpu: Optional[str] = typer.Option(None, "--cpu", help="Target CPU architecture"),
    target_libc: Optional[str] = typer.Option(None, "--libc", help="Target C library"),
    registry_dir: Optional[Path] = typer.Option(
        None,
        "--registry-dir",
        help="Directory of packument JSON files to use instead of the npm registry"
    ),
    database_path: Optional[Path] = typer.Option(
        None,
        "--database",
        help="Path to a local OSV database to use instead of the OSV API"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    performance: bool = typer.Option(
        False,
        "--performance",
        help="Show performance summary"
    )
) -> None:
    """Analyze the vulnerability tree of PACKAGE@VERSION."""
    setup_logging(verbose=verbose)

    try:
        config = AnalysisConfig.from_env(
            timeout=timeout,
            metadata_concurrency=concurrency,
            query_concurrency=concurrency,
            registry_dir=registry_dir,
            database_path=database_path,
        ).with_platform(os=target_os, cpu=target_cpu, libc=target_libc)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    monitor = PerformanceMonitor(enabled=performance)
    start_time = time.perf_counter()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            progress.add_task(f"Analyzing {package}@{version}...", total=None)
            result = asyncio.run(analyze_vulnerability_tree(
                package,
                version,
                config=config,
                performance_monitor=monitor,
            ))
    except VulnTreeError as e:
        logger.error(f"Analysis failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    scan_time = time.perf_counter() - start_time

    ConsoleFormatter(console).format_tree_result(result, scan_time=scan_time)

    if output:
        json_formatter = JSONFormatter(output)
        json_formatter.save_results(json_formatter.format_tree_result(result))
        console.print(f"[green]JSON results saved to: {output}[/green]")

    if performance:
        console.print("\n[bold cyan]Performance Summary:[/bold cyan]")
        monitor.print_summary()


@app.command()
def resolve(
    package: str = typer.Argument(..., help="npm package name"),
    range_spec: str = typer.Argument(..., metavar="RANGE", help="Version range or dist-tag"),
    registry_dir: Optional[Path] = typer.Option(
        None,
        "--registry-dir",
        help="Directory of packument JSON files to use instead of the npm registry"
    )
) -> None:
    """Print the version RANGE resolves to for PACKAGE."""

    async def resolve_online() -> Optional[str]:
        config = AnalysisConfig.from_env()
        async with NpmRegistryClient(base_url=config.registry_url, timeout=config.request_timeout) as client:
            return resolve_spec(range_spec, await client.fetch_package(package))

    async def resolve_offline(root: Path) -> Optional[str]:
        return resolve_spec(range_spec, await LocalRegistrySource(root).fetch_package(package))

    try:
        validate_package_name(package)
        if registry_dir is not None:
            resolved = asyncio.run(resolve_offline(registry_dir))
        else:
            resolved = asyncio.run(resolve_online())
    except (VulnTreeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if resolved is None:
        console.print(f"[yellow]No version of {package} satisfies '{range_spec}'[/yellow]")
        raise typer.Exit(1)

    console.print(f"{package}@{resolved}")


@app.command()
def test() -> None:
    """Test connectivity to the npm registry and the OSV API."""

    console.print("Testing vuln-tree...")
    try:
        config = AnalysisConfig.from_env()
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    async def test_online() -> bool:
        async with NpmRegistryClient(base_url=config.registry_url, timeout=config.request_timeout) as registry:
            registry_ok = await registry.test_connection()
        console.print(f"npm registry ({config.registry_url}): {'connection successful' if registry_ok else 'connection failed'}")

        async with OSVOnlineClient(base_url=config.osv_url, timeout=config.request_timeout) as osv:
            osv_ok = await osv.test_connection()
        console.print(f"OSV API ({config.osv_url}): {'connection successful' if osv_ok else 'connection failed'}")

        return registry_ok and osv_ok

    if not asyncio.run(test_online()):
        raise typer.Exit(1)


@app.command()
def info() -> None:
    """Show vuln-tree information."""

    console.print(Panel.fit(
        f"[bold blue]vuln-tree[/bold blue] {__version__}\n"
        "Resolves the dependency tree of an npm package\n"
        "and reports known vulnerabilities using OSV.dev",
        title="Information"
    ))

    platform = TARGET_PLATFORM
    console.print(
        f"\n[bold]Default target platform:[/bold] os={platform.os} cpu={platform.cpu} libc={platform.libc}"
    )
    console.print(
        "[bold]Environment:[/bold] VULN_TREE_REGISTRY_URL, VULN_TREE_OSV_URL, VULN_TREE_CONCURRENCY, "
        "VULN_TREE_TIMEOUT, VULN_TREE_OS, VULN_TREE_CPU, VULN_TREE_LIBC"
    )


def main() -> None:
    """Main entry point for vuln-tree CLI."""
    app()


if __name__ == "__main__":
    main()
