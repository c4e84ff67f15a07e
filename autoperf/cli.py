#!filepath: autoperf/cli.py
import asyncio
from typing import Any, Dict, List, Optional

import typer
from rich import print
from rich.markup import escape

from autoperf import __version__, logs
from autoperf.config.app_config import AppConfig
from autoperf.utils.errors import AutoPerfError, FilterSyntaxError, UserInputError
from autoperf.utils.pattern_filter import compile_filter
from autoperf.workflows.build import abuild_autowebperf

app = typer.Typer(help="AutoWebPerf - recurring web performance audits")


# --------------------------------------------------
# shared options
# --------------------------------------------------
TestsOpt = typer.Option(None, "--tests", help="Tests store (file path)")
ResultsOpt = typer.Option(None, "--results", help="Results store (file path)")
LatestOpt = typer.Option(None, "--latest", help="Latest-results mirror (file path)")
ConnectorOpt = typer.Option(None, "--connector", help="json | csv | memory | multi | <plugin>")
GatherersOpt = typer.Option(None, "--gatherers", help="Comma-separated gatherer names")
ExtensionsOpt = typer.Option(None, "--extensions", help="Comma-separated extension names")
FilterOpt = typer.Option(None, "--filter", help='Filter expression, e.g. \'status==="Error"\' (repeatable)')
SelectedOpt = typer.Option(False, "--selected-only", help='Shortcut for --filter "selected"')
BatchOpt = typer.Option(False, "--run-by-batch", help="Call each gatherer once for all tests")
GathererOpt = typer.Option(None, "--gatherer", help="Use only this gatherer for tests without one")
ConfigOpt = typer.Option(None, "--config", help="YAML config merged over the defaults")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Debug logging")


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _load_config(
    config: Optional[str],
    connector: Optional[str],
    tests: Optional[str],
    results: Optional[str],
    latest: Optional[str],
    gatherers: Optional[str],
    extensions: Optional[str],
    verbose: bool,
) -> AppConfig:
    cfg = AppConfig.load(config)
    logs.configure(cfg.log, level="DEBUG" if verbose else None)

    for key, value in (("type", connector), ("tests", tests), ("results", results), ("latest", latest)):
        if value is not None:
            setattr(cfg.connector, key, value)
    if gatherers is not None:
        cfg.engine.gatherers = _split(gatherers)
    if extensions is not None:
        cfg.engine.extensions = _split(extensions)
    return cfg


def _options(
    filters: Optional[List[str]],
    selected_only: bool,
    run_by_batch: bool,
    gatherer: Optional[str],
) -> Dict[str, Any]:
    expressions = list(filters or [])
    for expression in expressions:
        try:
            compile_filter(expression)
        except FilterSyntaxError as e:
            raise UserInputError(str(e)) from e
    if selected_only:
        expressions.insert(0, "selected")

    options: Dict[str, Any] = {"runByBatch": run_by_batch}
    if expressions:
        options["filters"] = expressions
    if gatherer:
        options["gatherer"] = gatherer
    return options


async def _act(action: str, cfg: AppConfig, options: Dict[str, Any]) -> Any:
    awp = await abuild_autowebperf(cfg)
    outcome = await getattr(awp, action)(options)
    logs.debug(f"[CLI] {action} counters: {awp.inst.metrics.metrics}")
    return outcome


@logs.catch(msg="action failed")
def _execute(action: str, cfg: AppConfig, options: Dict[str, Any]) -> Any:
    return asyncio.run(_act(action, cfg, options))


def _guard(fn, *args) -> Any:
    try:
        return fn(*args)
    except AutoPerfError as e:
        print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


# --------------------------------------------------
# commands
# --------------------------------------------------
@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    tests: Optional[str] = TestsOpt,
    results: Optional[str] = ResultsOpt,
    latest: Optional[str] = LatestOpt,
    connector: Optional[str] = ConnectorOpt,
    gatherers: Optional[str] = GatherersOpt,
    extensions: Optional[str] = ExtensionsOpt,
    filter: Optional[List[str]] = FilterOpt,
    selected_only: bool = SelectedOpt,
    run_by_batch: bool = BatchOpt,
    gatherer: Optional[str] = GathererOpt,
    config: Optional[str] = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """
    Submit audits for the (filtered) tests
    """
    cfg = _guard(_load_config, config, connector, tests, results, latest, gatherers, extensions, verbose)
    options = _guard(_options, filter, selected_only, run_by_batch, gatherer)
    created = _guard(_execute, "run", cfg, options)
    print(f"[green]run: {len(created)} results created[/green]")


@app.command()
def recurring(
    tests: Optional[str] = TestsOpt,
    results: Optional[str] = ResultsOpt,
    latest: Optional[str] = LatestOpt,
    connector: Optional[str] = ConnectorOpt,
    gatherers: Optional[str] = GatherersOpt,
    extensions: Optional[str] = ExtensionsOpt,
    filter: Optional[List[str]] = FilterOpt,
    selected_only: bool = SelectedOpt,
    run_by_batch: bool = BatchOpt,
    gatherer: Optional[str] = GathererOpt,
    config: Optional[str] = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """
    Run the recurring tests that are due
    """
    cfg = _guard(_load_config, config, connector, tests, results, latest, gatherers, extensions, verbose)
    options = _guard(_options, filter, selected_only, run_by_batch, gatherer)
    outcome = _guard(_execute, "recurring", cfg, options)
    print(f"[green]recurring: {len(outcome.tests)} tests triggered, {len(outcome.results)} results created[/green]")


@app.command("recurring-activate")
def recurring_activate(
    tests: Optional[str] = TestsOpt,
    connector: Optional[str] = ConnectorOpt,
    extensions: Optional[str] = ExtensionsOpt,
    filter: Optional[List[str]] = FilterOpt,
    selected_only: bool = SelectedOpt,
    config: Optional[str] = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """
    Compute next triggers for recurring tests without submitting anything
    """
    cfg = _guard(_load_config, config, connector, tests, None, None, None, extensions, verbose)
    options = _guard(_options, filter, selected_only, False, None)
    options["activateOnly"] = True
    outcome = _guard(_execute, "recurring", cfg, options)
    print(f"[green]recurring-activate: {len(outcome.tests)} tests updated[/green]")


@app.command()
def retrieve(
    tests: Optional[str] = TestsOpt,
    results: Optional[str] = ResultsOpt,
    latest: Optional[str] = LatestOpt,
    connector: Optional[str] = ConnectorOpt,
    gatherers: Optional[str] = GatherersOpt,
    extensions: Optional[str] = ExtensionsOpt,
    filter: Optional[List[str]] = FilterOpt,
    run_by_batch: bool = BatchOpt,
    config: Optional[str] = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """
    Poll gatherers for results that are not final yet
    """
    cfg = _guard(_load_config, config, connector, tests, results, latest, gatherers, extensions, verbose)
    options = _guard(_options, filter, False, run_by_batch, None)
    outcome = _guard(_execute, "retrieve", cfg, options)
    color = "yellow" if outcome.has_pending else "green"
    print(f"[{color}]retrieve: {len(outcome.results)} results updated, {outcome.pending} pending[/{color}]")


def main():
    app()


if __name__ == "__main__":
    main()

# python -m autoperf.cli run --tests tests.json --results output/results.json
