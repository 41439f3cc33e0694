"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "RemoteError": 1,
    "MalformedIdentifier": 2,
    "ValidationError": 2,
    "ValueError": 2,
    "TransportError": 3,
    "DecodeError": 4,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 1: Daemon rejected the request (RemoteError)
    - 2: Bad input (MalformedIdentifier, ValueError, ValidationError)
    - 3: Network error (TransportError) or unknown error
    - 4: Unexpected response shape (DecodeError)

    Subclasses map like their nearest mapped base class, so a
    json.JSONDecodeError is treated as a ValueError.
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in EXIT_CODES:
            return EXIT_CODES[cls.__name__]
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, printing the error message to stderr.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
