import asyncio
import inspect
import typer
import logging
from dotenv import load_dotenv
from InquirerPy import inquirer
from ens_indexer.app.interface.tasks import TASKS


load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing ENS registrar data.")
app.add_typer(indexer_app, name="indexer")


def _block_selector(value: str) -> int | str:
    value = value.strip()
    return int(value) if value.isdigit() else value


@indexer_app.command("run")
def run() -> None:
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()
    from_block = inquirer.text(
        message="From block (inclusive):",
        default="earliest",
    ).execute()
    to_block = inquirer.text(
        message="To block (inclusive):",
        default="latest",
    ).execute()

    task = TASKS[task_name]

    kwargs: dict[str, object] = {}

    params = inspect.signature(task).parameters

    if "from_block" in params:
        kwargs["from_block"] = _block_selector(from_block)
    if "to_block" in params:
        kwargs["to_block"] = _block_selector(to_block)

    asyncio.run(task(**kwargs))


@indexer_app.command("range")
def run_range(
    from_block: str = typer.Option("earliest", help="First block (inclusive) or 'earliest'."),
    to_block: str = typer.Option("latest", help="Last block (inclusive) or 'latest'."),
    task_name: str = typer.Option("domain__index_ens_registrar_task", "--task", help="Task to run."),
) -> None:
    """Non-interactive variant of `run`."""
    try:
        task = TASKS[task_name]
    except KeyError:
        raise typer.BadParameter(f"Unknown task {task_name!r}. Available: {sorted(TASKS)}")

    asyncio.run(
        task(
            from_block=_block_selector(from_block),
            to_block=_block_selector(to_block),
        )
    )


if __name__ == "__main__":
    LOGO = r"""
      --- ENS Registrar Indexer CLI ---
    """
    typer.echo(LOGO)
    app()
