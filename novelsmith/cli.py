import click
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Config
from .errors import ConfigError, NovelsmithError
from .judge import EvaluationJudge
from .optimizer import OptimizationEngine, PromptOptimizationConfig
from .orchestrator import Orchestrator
from .prompt_library import PromptLibrary
from .prompts import PROMPT_RUBRICS
from .rubrics import RUBRICS, get_rubric
from .service import build_service
from .staleness import StalenessTracker
from .store import JsonFileStore
from .utils.logger import setup_logger
from .utils.progress import track_pipeline

console = Console()


def _service(ctx: click.Context):
    # Tests and embedding callers may pre-seed a service in ctx.obj
    if ctx.obj.get('service') is None:
        try:
            ctx.obj['service'] = build_service(ctx.obj['config'].service)
        except ConfigError as e:
            raise click.ClickException(str(e))
    return ctx.obj['service']


def _store(ctx: click.Context, project: str) -> JsonFileStore:
    config = ctx.obj['config']
    path = Path(project) if project else config.storage.project_file
    return JsonFileStore(path)


def _library(ctx: click.Context) -> PromptLibrary:
    return PromptLibrary(ctx.obj['config'].storage.prompt_library_file)


def _print_report(report) -> None:
    console.print(
        f"Drafted: [green]{len(report.drafted)}[/green]  "
        f"Skipped: [yellow]{len(report.skipped)}[/yellow]  "
        f"Failed: [red]{len(report.failed)}[/red]"
    )
    for unit_id, message in report.failed.items():
        console.print(f"  [red]{unit_id}[/red]: {message}")


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(), default=None, help='Also write a debug log here')
@click.version_option(__version__, prog_name='novelsmith')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool, log_file: str):
    """Novelsmith - draft long-form fiction with reflective optimization."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level, Path(log_file) if log_file else None)
    ctx.obj['logger'] = logger

    logger.debug(f"Novelsmith v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")


@cli.command()
@click.argument('premise_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--units', '-n', type=int, default=None, help='Number of chapters to plan')
@click.option('--project', '-p', type=click.Path(), default=None, help='Project JSON file')
@click.option('--overwrite', is_flag=True, help='Redraft units that already have a body')
@click.option('--optimize', is_flag=True, help='Run reflective optimization on each draft')
@click.option('--stream', is_flag=True, help='Use the streaming generation endpoint')
@click.pass_context
def build(ctx: click.Context, premise_file: str, units: int, project: str,
          overwrite: bool, optimize: bool, stream: bool):
    """Auto-build a novel from a premise or outline file."""
    logger = ctx.obj['logger']
    premise = Path(premise_file).read_text(encoding='utf-8')
    store = _store(ctx, project)

    logger.info(f"Building from {premise_file}...")
    try:
        with track_pipeline("Building", console=console) as progress:
            orchestrator = Orchestrator(
                _service(ctx), store, ctx.obj['config'], _library(ctx), progress=progress
            )
            report = orchestrator.auto_build(
                premise,
                unit_count=units,
                overwrite=overwrite or None,
                optimize=optimize or None,
                stream=stream or None,
            )
    except NovelsmithError as e:
        logger.error(f"Build failed: {e}")
        raise click.ClickException(str(e))

    _print_report(report)
    if report.gaps:
        console.print(f"[yellow]{len(report.gaps)} validation gap(s) resolved positionally[/yellow]")
    logger.success(f"Project saved to {store.path}")


@cli.command()
@click.option('--project', '-p', type=click.Path(), default=None, help='Project JSON file')
@click.option('--unit', '-u', 'unit_id', default=None, help='Draft only this unit id')
@click.option('--overwrite', is_flag=True, help='Redraft units that already have a body')
@click.option('--optimize', is_flag=True, help='Run reflective optimization on each draft')
@click.option('--stream', is_flag=True, help='Use the streaming generation endpoint')
@click.pass_context
def draft(ctx: click.Context, project: str, unit_id: str, overwrite: bool,
          optimize: bool, stream: bool):
    """Draft the units of an existing skeleton."""
    logger = ctx.obj['logger']
    config = ctx.obj['config']
    store = _store(ctx, project)
    optimize = optimize or config.optimizer.enabled

    orchestrator = Orchestrator(_service(ctx), store, config, _library(ctx))
    if unit_id:
        try:
            unit = orchestrator.draft_unit(unit_id, optimize=optimize, stream=stream)
        except KeyError as e:
            raise click.ClickException(str(e.args[0]))
        except NovelsmithError as e:
            logger.error(f"Drafting failed: {e}")
            raise click.ClickException(str(e))
        logger.success(f"Drafted '{unit.title}' (~{unit.context_token_estimate} context tokens)")
        return

    with track_pipeline("Drafting", console=console) as progress:
        orchestrator.progress = progress
        report = orchestrator.draft_units(overwrite=overwrite, optimize=optimize, stream=stream)
    _print_report(report)


@cli.command()
@click.option('--project', '-p', type=click.Path(), default=None, help='Project JSON file')
@click.option('--refresh', is_flag=True, help='Recompute and store context metadata for stale units')
@click.pass_context
def stale(ctx: click.Context, project: str, refresh: bool):
    """List units whose composed context changed since it was last recorded."""
    store = _store(ctx, project)
    tracker = StalenessTracker(store)
    units = tracker.stale_units()
    if not units:
        console.print("[green]All units are up to date[/green]")
        return
    for unit in units:
        console.print(f"[yellow]stale[/yellow] {unit.id}  {unit.title}")
        if refresh:
            tracker.update_context_metadata(unit.id)
    if refresh:
        ctx.obj['logger'].success(f"Refreshed {len(units)} unit(s)")


@cli.command()
@click.option('--project', '-p', type=click.Path(), default=None, help='Project JSON file')
@click.pass_context
def show(ctx: click.Context, project: str):
    """Show the units of a project."""
    store = _store(ctx, project)
    table = Table(title=store.project.title)
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Words", justify="right")
    table.add_column("Ctx tokens", justify="right")
    for unit in store.list_units():
        table.add_row(
            str(unit.order_index + 1),
            unit.id,
            unit.title,
            unit.draft_status.value,
            str(len(unit.body.split())),
            str(unit.context_token_estimate),
        )
    console.print(table)


@cli.command(name='optimize-prompt')
@click.argument('key')
@click.option('--sample', '-s', 'sample_file', type=click.Path(exists=True, dir_okay=False),
              required=True, help='Sample input to run the prompt on')
@click.option('--task', '-t', 'task_description', required=True,
              help='What the prompt should accomplish')
@click.option('--rubric', '-r', type=click.Choice(sorted(RUBRICS)), default=None,
              help='Rubric for scoring the output')
@click.option('--iterations', type=int, default=None, help='Max optimization iterations')
@click.pass_context
def optimize_prompt(ctx: click.Context, key: str, sample_file: str, task_description: str,
                    rubric: str, iterations: int):
    """Improve a stage prompt and save it to the prompt library."""
    logger = ctx.obj['logger']
    settings = ctx.obj['config'].optimizer
    library = _library(ctx)
    try:
        original = library.get(key)
    except KeyError as e:
        raise click.ClickException(str(e.args[0]))

    engine = OptimizationEngine(_service(ctx))
    try:
        result = engine.optimize_prompt(PromptOptimizationConfig(
            system_prompt=original,
            prompt_name=key,
            sample_input=Path(sample_file).read_text(encoding='utf-8'),
            dimensions=get_rubric(rubric or PROMPT_RUBRICS.get(key, 'chapter_generation')),
            task_description=task_description,
            max_iterations=iterations or settings.max_iterations,
            target_score=settings.target_score,
        ))
    except NovelsmithError as e:
        logger.error(f"Prompt optimization failed: {e}")
        raise click.ClickException(str(e))

    console.print(f"Score: {result.final_score:.2f} after {result.iterations} iteration(s)")
    if result.improved_prompt == original:
        console.print("[yellow]No improvement found; prompt unchanged[/yellow]")
        return
    library.save_improved(
        key, original, result.improved_prompt, result.final_score, result.prompt_mutations
    )
    logger.success(f"Improved '{key}' saved to {library.path}")


@cli.command()
@click.argument('text_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--rubric', '-r', type=click.Choice(sorted(RUBRICS)), default='chapter',
              help='Rubric to score against')
@click.option('--context', 'context_file', type=click.Path(exists=True, dir_okay=False),
              default=None, help='Optional context file for the judge')
@click.pass_context
def evaluate(ctx: click.Context, text_file: str, rubric: str, context_file: str):
    """Score a text file against a rubric without changing it."""
    text = Path(text_file).read_text(encoding='utf-8')
    context = Path(context_file).read_text(encoding='utf-8') if context_file else None
    try:
        reflection = EvaluationJudge(_service(ctx)).evaluate(
            text, get_rubric(rubric), context=context, task_name=rubric
        )
    except NovelsmithError as e:
        raise click.ClickException(str(e))

    table = Table(title=f"{rubric}: {reflection.overall_score:.1f}/10")
    table.add_column("Dimension")
    table.add_column("Score", justify="right")
    table.add_column("Failures", justify="right")
    table.add_column("Successes", justify="right")
    for trace in reflection.traces:
        table.add_row(trace.dimension, f"{trace.score:g}",
                      str(len(trace.failures)), str(len(trace.successes)))
    console.print(table)
    if reflection.priority_fix:
        console.print(f"Priority fix: {reflection.priority_fix}")
    for m in reflection.mutations:
        console.print(f"  - {m.render()}")


def main():
    cli()

if __name__ == '__main__':
    main()
