from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn


def create_progress(console: Optional[Console] = None) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    )


@contextmanager
def track_pipeline(
    description: str = "Working...", console: Optional[Console] = None
) -> Iterator[Callable[[str, int, int], None]]:
    """Yield an orchestrator progress callback that drives a rich progress bar.

    The callback reports the step about to start, so the bar shows
    ``index - 1`` steps completed until the run finishes.
    """
    with create_progress(console) as progress:
        task_id = progress.add_task(description, total=None)

        def callback(message: str, index: int, total: int) -> None:
            progress.update(task_id, description=message, completed=index - 1, total=total)

        yield callback
        task = progress.tasks[0]
        progress.update(task_id, description="Done", completed=task.total or 0)
