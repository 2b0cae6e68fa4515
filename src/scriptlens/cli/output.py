"""
CLI Output Utilities

Machine-aware output functions that adapt based on machine mode.
"""

import json
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from scriptlens.cli.config import CLIConfig

_console = Console()


def echo(message: str = "", **kwargs) -> None:
    """
    Print a message respecting machine mode.
    In machine mode, prints plain text.
    """
    if CLIConfig.is_machine_mode():
        print(message, **kwargs)
    else:
        typer.echo(message, **kwargs)


def print_table(table: Table) -> None:
    """
    Print a rich table. Tables are human-mode only; machine mode uses JSON.
    """
    if not CLIConfig.is_machine_mode():
        _console.print(table)


def print_json(data: Any, minified: Optional[bool] = None) -> None:
    """
    Print JSON data respecting machine mode.
    In machine mode, always minifies. In human mode, pretty prints.
    """
    if minified is None:
        minified = CLIConfig.is_machine_mode()

    if minified:
        echo(json.dumps(data, separators=(',', ':')))
    else:
        echo(json.dumps(data, indent=2))


def structured_error(code: str, message: str, input_value: Optional[str] = None) -> dict:
    """
    Create a structured error object for machine mode.

    Args:
        code: Error code (e.g., "IMPORT_NOT_FOUND", "FILE_NOT_FOUND")
        message: Human-readable error message
        input_value: The input that caused the error

    Returns:
        Structured error dictionary
    """
    error_obj = {
        "status": "error",
        "code": code,
        "message": message
    }
    if input_value:
        error_obj["input"] = input_value
    return error_obj


def print_error(message: str, code: str = "ERROR", input_value: Optional[str] = None) -> None:
    """
    Print an error message respecting machine mode.
    In machine mode, outputs a structured JSON error.
    """
    if CLIConfig.is_machine_mode():
        print_json(structured_error(code, message, input_value))
    else:
        typer.echo(f"Error: {message}", err=True)
