"""
CovidSpread CLI - 命令行接口

运行完整分析流程、检查国家名称对齐、查看配置
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from covidspread.core import AppSettings, CovidSpreadError, get_config, get_logger, setup_logging
from covidspread.domain import Columns
from covidspread.generation.charts import ChartFormat

app = typer.Typer(
    name="covidspread",
    help="CovidSpread - COVID-19 case and population analysis pipeline",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)


def _settings(
    cases_archive: Optional[Path] = None,
    population_archive: Optional[Path] = None,
    rename_table: Optional[Path] = None,
    confirmed_threshold: Optional[int] = None,
    deaths_threshold: Optional[int] = None,
    strict: Optional[bool] = None,
    output_dir: Optional[Path] = None,
) -> AppSettings:
    """命令行参数覆盖配置"""
    cfg = get_config()

    data_update = {
        key: value
        for key, value in {
            "cases_archive": cases_archive,
            "population_archive": population_archive,
            "rename_table": rename_table,
        }.items()
        if value is not None
    }
    pipeline_update = {
        key: value
        for key, value in {
            "confirmed_threshold": confirmed_threshold,
            "deaths_threshold": deaths_threshold,
            "strict_reconciliation": strict,
        }.items()
        if value is not None
    }

    update = {
        "data": cfg.data.model_copy(update=data_update),
        "pipeline": cfg.pipeline.model_copy(update=pipeline_update),
    }
    if output_dir is not None:
        update["output_dir"] = output_dir
    return cfg.model_copy(update=update)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """CovidSpread - COVID-19 case and population analysis pipeline"""
    if verbose:
        setup_logging(level="DEBUG", force=True)


@app.command()
def version():
    """显示版本信息"""
    from covidspread import __version__
    console.print(f"[bold cyan]CovidSpread[/bold cyan] [green]v{__version__}[/green]")


@app.command()
def config():
    """显示当前配置"""
    cfg = get_config()

    table = Table(title="CovidSpread Configuration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", width=30)
    table.add_column("Value", style="white")

    table.add_row("App Name", cfg.app_name)
    table.add_row("Version", cfg.version)
    table.add_row("Environment", cfg.app_env)
    table.add_row("Log Level", cfg.log_level)
    table.add_row("Output Dir", str(cfg.output_dir))
    table.add_row("", "")
    table.add_row("Cases Archive", f"{cfg.data.cases_archive} ({cfg.data.cases_member or '*.csv'})")
    table.add_row("Population Archive", f"{cfg.data.population_archive} ({cfg.data.population_member or '*.csv'})")
    table.add_row("Rename Table", str(cfg.data.rename_table or "built-in"))
    table.add_row("", "")
    table.add_row("Confirmed Threshold", f"> {cfg.pipeline.confirmed_threshold}")
    table.add_row("Deaths Threshold", f"> {cfg.pipeline.deaths_threshold}")
    table.add_row("Min Population", f"> {cfg.pipeline.min_population:,}")
    table.add_row("Negligible Unmatched", f"<= {cfg.pipeline.max_unmatched_confirmed:,} confirmed")
    table.add_row("Strict Reconciliation", "✓" if cfg.pipeline.strict_reconciliation else "✗")
    table.add_row("Top N", str(cfg.pipeline.top_n))
    table.add_row("Watch List", ", ".join(cfg.pipeline.watch_list))
    table.add_row("Doubling Periods", ", ".join(str(p) for p in cfg.pipeline.doubling_periods))

    console.print(table)


@app.command()
def reconcile(
    cases_archive: Optional[Path] = typer.Option(None, help="Case-count archive (zip)"),
    population_archive: Optional[Path] = typer.Option(None, help="Population archive (zip)"),
    rename_table: Optional[Path] = typer.Option(None, help="Rename table CSV (old_name,canonical_name)"),
    export: Optional[Path] = typer.Option(None, help="Write unmatched names to this CSV"),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Exit with status 1 when material mismatches remain"
    ),
):
    """
    检查国家名称对齐情况

    显示映射前后的差集和剩余未匹配名称的最新确诊量。严格模式（--strict 或
    PIPELINE_STRICT_RECONCILIATION=true）下存在显著未匹配名称时以状态1退出
    """
    from covidspread.data.loaders import ArchiveLoader
    from covidspread.data.normalizers import CaseNormalizer, CountryReconciler, CountryRenameTable

    cfg = _settings(cases_archive, population_archive, rename_table, strict=strict)

    try:
        loader = ArchiveLoader(cfg.data)
        cases = CaseNormalizer().normalize(loader.load_cases())
        population = loader.load_population()
        table = (
            CountryRenameTable.from_csv(cfg.data.rename_table)
            if cfg.data.rename_table
            else CountryRenameTable.default()
        )
        reconciler = CountryReconciler(table, max_unmatched_confirmed=cfg.pipeline.max_unmatched_confirmed)
        _, report = reconciler.reconcile(cases, population)
    except CovidSpreadError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"Rename table version: [cyan]{report.table_version}[/cyan] ({len(table)} entries)")
    console.print(f"Unmatched before renaming: [yellow]{len(report.unmatched_before)}[/yellow]")
    console.print(f"Unmatched after renaming:  [yellow]{len(report.unmatched_after)}[/yellow]\n")

    if report.unmatched_volume:
        result_table = Table(title="Residual unmatched countries", show_header=True, header_style="bold magenta")
        result_table.add_column("Country", style="cyan")
        result_table.add_column("Latest confirmed", justify="right")
        result_table.add_column("Status")
        for name, volume in sorted(report.unmatched_volume.items(), key=lambda item: -item[1]):
            status = "[red]material[/red]" if volume > report.threshold else "[green]negligible[/green]"
            result_table.add_row(name, f"{volume:,}", status)
        console.print(result_table)
        console.print(f"\nUnmatched share of latest confirmed volume: {report.unmatched_share:.4%}")

    if export:
        path = CountryReconciler.export_unmatched(report, export)
        console.print(f"[green]✓ Unmatched names written to {path}[/green]")

    if report.is_acceptable:
        console.print("\n[bold green]✓ Residual mismatches are negligible[/bold green]")
    else:
        console.print(f"\n[bold red]✗ {len(report.material)} material mismatches remain[/bold red]")
        if cfg.pipeline.strict_reconciliation:
            raise typer.Exit(1)


@app.command()
def run(
    cases_archive: Optional[Path] = typer.Option(None, help="Case-count archive (zip)"),
    population_archive: Optional[Path] = typer.Option(None, help="Population archive (zip)"),
    rename_table: Optional[Path] = typer.Option(None, help="Rename table CSV (old_name,canonical_name)"),
    confirmed_threshold: Optional[int] = typer.Option(None, help="Confirmed-case threshold (strictly greater)"),
    deaths_threshold: Optional[int] = typer.Option(None, help="Death threshold (strictly greater)"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Abort on material country mismatches"),
    output_dir: Optional[Path] = typer.Option(None, help="Output directory for charts and tables"),
    charts: bool = typer.Option(True, "--charts/--no-charts", help="Render charts"),
    chart_format: ChartFormat = typer.Option(
        ChartFormat.HTML, "--chart-format", help="Chart file format (png/svg/pdf need the images extra)"
    ),
    export_json: bool = typer.Option(False, "--json", help="Also export tables as JSON"),
):
    """
    运行完整分析流程

    加载 → 标准化 → 名称对齐 → 汇总 → 人口增强 → 输出图表和数据表
    """
    from covidspread.data.processors import SpreadPipeline
    from covidspread.generation import ReportGenerator

    cfg = _settings(
        cases_archive,
        population_archive,
        rename_table,
        confirmed_threshold,
        deaths_threshold,
        strict,
        output_dir,
    )

    console.print("[bold blue]🚀 Running CovidSpread pipeline...[/bold blue]")
    try:
        result = SpreadPipeline(settings=cfg).run()
        outputs = ReportGenerator(output_dir=cfg.output_dir, chart_format=chart_format.value).generate(
            result,
            charts=charts,
            formats=["csv", "json"] if export_json else ["csv"],
        )
    except CovidSpreadError as e:
        logger.error(f"Pipeline aborted: {e}")
        console.print(f"[bold red]✗ Pipeline aborted: {e}[/bold red]")
        raise typer.Exit(1)

    summary = Table(title="Pipeline Summary", show_header=True, header_style="bold magenta")
    summary.add_column("Item", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Case rows", f"{len(result.cases):,}")
    summary.add_row("Countries", f"{result.country_spread[Columns.COUNTRY].nunique():,}")
    summary.add_row("Population-enriched countries", f"{len(result.latest):,}")
    summary.add_row("Unmatched countries", str(len(result.reconciliation.unmatched_after)))
    summary.add_row("Selected countries", ", ".join(result.top_countries))
    summary.add_row("Files written", str(len(outputs)))
    console.print(summary)

    console.print(f"\n[bold green]✓ Report written to {cfg.output_dir}[/bold green]")


if __name__ == "__main__":
    app()
