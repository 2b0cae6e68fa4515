from pathlib import Path

import typer
from rich.table import Table

from scriptlens.cli.config import CLIConfig
from scriptlens.cli.output import echo, print_error, print_json, print_table
from scriptlens.decoration import get_decoration_info, needs_autoclass_wrapper
from scriptlens.exceptions import ImportNotFoundError, ScriptLensError
from scriptlens.logging_config import logger, setup_logging
from scriptlens.resolution import get_search_directories, resolve_script_closure
from scriptlens.schemas import DedupStrategy
from scriptlens.user_config import get_user_config

app = typer.Typer()


@app.callback()
def global_options(
    human: bool = typer.Option(
        False,
        "--human",
        "-H",
        help="Enable human mode: tables and colors instead of JSON (also via SCRIPTLENS_HUMAN_MODE env var)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolution details to stderr"),
):
    """
    ScriptLens: compilation closure resolver for scripts.

    Machine mode is the default (minified JSON on stdout).
    Use --human/-H for pretty output.
    """
    if human:
        CLIConfig.set_machine_mode(False)
        setup_logging(level="DEBUG" if verbose else None, suppress_console=False)
    else:
        CLIConfig.set_machine_mode(True)
        setup_logging(level="DEBUG", suppress_console=not verbose)


@app.command()
def resolve(
    script: Path = typer.Argument(..., help="Script to resolve."),
    strict_identity: bool = typer.Option(
        False,
        "--strict-identity",
        help="Deduplicate libraries by their declared assembly name (slower, loads metadata out of process)",
    ),
):
    """
    Resolve the source files and libraries a script needs.
    """
    strategy = DedupStrategy.LOAD if strict_identity else None
    try:
        closure = resolve_script_closure(str(script), dedup_strategy=strategy)
    except ImportNotFoundError as e:
        print_error(str(e), code="IMPORT_NOT_FOUND", input_value=e.import_name)
        raise typer.Exit(code=1)
    except ScriptLensError as e:
        print_error(str(e), code="RESOLUTION_FAILED", input_value=str(script))
        raise typer.Exit(code=1)
    except OSError as e:
        # Generated imports could not be written to the imports cache
        print_error(str(e), code="MATERIALIZATION_FAILED", input_value=str(script))
        raise typer.Exit(code=1)

    if CLIConfig.is_machine_mode():
        print_json(closure.model_dump(mode="json"))
        return

    table = Table(title=f"Closure of {script.name}")
    table.add_column("Kind", style="cyan")
    table.add_column("Path", style="green")
    for path in closure.source_files:
        table.add_row("source", path)
    for path in closure.libraries:
        table.add_row("library", path)
    print_table(table)
    echo(f"Library identity: {closure.dedup_strategy.value}")


@app.command("search-dirs")
def search_dirs():
    """
    Show the global library search directories ($CSSCRIPT_DIR based).
    """
    dirs = get_search_directories()
    if CLIConfig.is_machine_mode():
        print_json({"search_dirs": dirs})
        return

    if not dirs:
        echo("No global search directories (CSSCRIPT_DIR is not set).")
    for directory in dirs:
        echo(directory)


@app.command()
def decoration(
    script: Path = typer.Argument(..., help="Transformed script text to inspect."),
):
    """
    Report the auto-class decoration region of a script.
    """
    try:
        # newline="" keeps \r\n so offsets match the editor buffer
        with open(script, "r", encoding="utf-8-sig", newline="") as f:
            code = f.read()
    except OSError as e:
        print_error(f"Cannot read {script}: {e}", code="FILE_NOT_FOUND", input_value=str(script))
        raise typer.Exit(code=1)

    info = get_decoration_info(code)
    payload = {
        "offset": info.offset,
        "length": info.length,
        "needs_autoclass": needs_autoclass_wrapper(code),
    }
    if CLIConfig.is_machine_mode():
        print_json(payload)
    elif info.found:
        echo(f"Injected region: offset {info.offset}, length {info.length}")
    else:
        echo("No injected region.")


@app.command()
def config():
    """
    Show the effective user configuration.
    """
    settings = get_user_config().get_all()
    logger.debug(f"Effective config: {settings}")
    print_json(settings)


if __name__ == "__main__":
    app()
