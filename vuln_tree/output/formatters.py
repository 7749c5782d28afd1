"""Output formatters for vuln-tree results."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import PackageVulnerabilityInfo, VulnerabilityTreeResult
from ..core.severity import Severity
from ..utils.logging import get_logger

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MODERATE: "yellow",
    Severity.LOW: "cyan",
    Severity.UNKNOWN: "dim",
}


class ConsoleFormatter:
    """Rich console formatter for vulnerability tree results."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()
        self.logger = get_logger("ConsoleFormatter")

    def format_tree_result(self, result: VulnerabilityTreeResult, scan_time: Optional[float] = None) -> None:
        """Display a summary panel and the table of vulnerable packages.

        Args:
            result: Analysis result
            scan_time: Optional analysis time in seconds
        """
        self.console.print(self._create_summary_panel(result, scan_time))

        if not result.vulnerable_packages:
            self.console.print(Panel("No vulnerabilities found!", style="green"))
            return

        self.console.print(self._create_vulnerabilities_table(result))

    def _create_summary_panel(self, result: VulnerabilityTreeResult, scan_time: Optional[float]) -> Panel:
        counts = result.total_counts

        if result.vulnerable_packages:
            style = "red"
            title = f"Found vulnerabilities in {len(result.vulnerable_packages)} packages!"
        else:
            style = "green"
            title = "No vulnerabilities found"

        lines = [
            f"Package: {result.package}@{result.version}",
            f"• Packages analyzed: {result.total_packages}",
            f"• Vulnerable packages: {len(result.vulnerable_packages)}",
            f"• Vulnerabilities: {counts.total} "
            f"(critical {counts.critical}, high {counts.high}, moderate {counts.moderate}, low {counts.low})",
        ]
        if result.failed_queries:
            lines.append(f"• Failed lookups: {result.failed_queries}")
        if result.partial:
            lines.append("• Analysis interrupted: results are partial")
        if scan_time is not None:
            lines.append(f"• Scan time: {scan_time:.2f}s")

        return Panel("\n".join(lines), title=title, style=style)

    def _create_vulnerabilities_table(self, result: VulnerabilityTreeResult) -> Table:
        table = Table(title="Vulnerable Packages")

        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Version", style="magenta")
        table.add_column("Depth")
        table.add_column("Severity")
        table.add_column("Vulnerabilities", justify="right")
        table.add_column("Path", style="dim")

        for info in result.vulnerable_packages:
            severity = info.highest_severity
            table.add_row(
                info.name,
                info.version,
                info.depth.value,
                Text(severity.value, style=SEVERITY_STYLES[severity]),
                self._format_ids(info),
                " > ".join(info.path) or "-",
            )

        return table

    def _format_ids(self, info: PackageVulnerabilityInfo) -> str:
        ids = [vuln.id for vuln in info.vulnerabilities[:3]]
        if len(info.vulnerabilities) > 3:
            ids.append(f"+{len(info.vulnerabilities) - 3} more")
        return f"{len(info.vulnerabilities)}: " + ", ".join(ids)

    def format_error(self, error: str, details: Optional[str] = None) -> None:
        """Format and display error message.

        Args:
            error: Error message
            details: Optional error details
        """
        content = f"[bold red]Error:[/bold red] {error}"
        if details:
            content += f"\n\n[dim]{details}[/dim]"

        self.console.print(Panel(content, style="red"))


class JSONFormatter:
    """JSON formatter for vulnerability tree results."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_tree_result(self, result: VulnerabilityTreeResult) -> Dict[str, Any]:
        """Convert a result to its JSON document.

        Args:
            result: Analysis result

        Returns:
            JSON-serializable dictionary
        """
        return {
            "package": result.package,
            "version": result.version,
            "vulnerablePackages": [
                {
                    "name": info.name,
                    "version": info.version,
                    "depth": info.depth.value,
                    "path": list(info.path),
                    "vulnerabilities": [vuln.to_dict() for vuln in info.vulnerabilities],
                    "counts": info.counts.to_dict(),
                }
                for info in result.vulnerable_packages
            ],
            "totalPackages": result.total_packages,
            "failedQueries": result.failed_queries,
            "totalCounts": result.total_counts.to_dict(),
            "partial": result.partial,
            "generatedAt": datetime.now().isoformat(),
        }

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except IOError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise
