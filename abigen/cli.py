"""
abigen.cli
==========

`abigen`: generate Python contract bindings from the command line.

Examples
--------
    $ abigen generate ERC20Token ./abi/ERC20.json -o erc20_token.py
    $ abigen generate Counter "function getValue() view returns (uint256)"
    $ abigen generate Overloads ./abi/Overloads.json --alias "setValue(uint256)=set_value_u"
    $ abigen module ./abi ./src/contracts
    $ abigen check ./abi ./src/contracts      # exit 1 when committed bindings are stale

Configuration
-------------
- Log level   : `--log-level` or env `ABIGEN_LOG_LEVEL` (default: INFO)
- Log format  : `--json-logs` or env `ABIGEN_LOG_FORMAT=json|text`
- Formatter   : env `ABIGEN_FORMATTER` (default: "black -q -")

Errors raised by the library exit with status 2 and a one-line message
(a JSON object with `--json-logs`).
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

import typer

from . import logging as alog
from .bindings import Abigen
from .config import AbigenConfig
from .consistency import diff_bindings
from .errors import AbigenError
from .multi import MultiAbigen
from .version import version as _version

app = typer.Typer(
    name="abigen",
    help="Generate typed Python bindings for smart-contract ABIs.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]

EXIT_STALE = 1
EXIT_ERROR = 2


@dataclass
class Ctx:
    config: AbigenConfig
    json_output: bool


def _ctx(ctx: typer.Context) -> Ctx:
    if isinstance(ctx.obj, Ctx):
        return ctx.obj
    return Ctx(config=AbigenConfig.from_env(), json_output=False)


def _fail(ctx: typer.Context, err: AbigenError) -> NoReturn:
    if _ctx(ctx).json_output:
        typer.echo(json.dumps(err.to_dict(), sort_keys=True), err=True)
    else:
        typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=EXIT_ERROR)


def _pairs(values: Optional[List[str]], option: str) -> List[Tuple[str, str]]:
    """Split `SIG=NAME` option values on the last '='."""
    out: List[Tuple[str, str]] = []
    for raw in values or []:
        sig, sep, name = raw.rpartition("=")
        if not sep or not sig.strip() or not name.strip():
            raise typer.BadParameter(f"expected SIGNATURE=NAME, got {raw!r}", param_hint=option)
        out.append((sig.strip(), name.strip()))
    return out


@app.callback()
def _root(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Minimum log level (DEBUG, INFO, WARNING, ERROR).",
        envvar="ABIGEN_LOG_LEVEL",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs and errors as JSON lines.",
    ),
) -> None:
    """Configure logging and load settings from the environment."""
    try:
        config = AbigenConfig.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    alog.configure(json=True if json_logs else None, level=log_level or config.log_level)
    ctx.obj = Ctx(config=config, json_output=json_logs)


@app.command("version")
def version() -> None:
    """Print the abigen version."""
    typer.echo(f"abigen {_version()}")


@app.command("generate")
def generate(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Contract name (becomes the class name)."),
    source: str = typer.Argument(..., help="Inline JSON / human-readable ABI, file path, URL or registry:id."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to FILE instead of stdout."),
    alias: Optional[List[str]] = typer.Option(None, "--alias", help="Method alias, SIGNATURE=NAME (repeatable)."),
    event_alias: Optional[List[str]] = typer.Option(
        None, "--event-alias", help="Event alias, SIGNATURE=NAME (repeatable)."
    ),
    derive: Optional[List[str]] = typer.Option(
        None, "--derive", help="Dotted class decorator applied to event classes (repeatable)."
    ),
    no_format: bool = typer.Option(False, "--no-format", help="Skip the external formatter."),
) -> None:
    """Generate bindings for one contract."""
    c = _ctx(ctx)
    method_aliases = _pairs(alias, "--alias")
    event_aliases = _pairs(event_alias, "--event-alias")
    try:
        unit = Abigen.new(name, source, config=c.config)
        for sig, new_name in method_aliases:
            unit = unit.add_method_alias(sig, new_name)
        for sig, new_name in event_aliases:
            unit = unit.add_event_alias(sig, new_name)
        for path in derive or []:
            unit = unit.add_event_derive(path)
        bindings = unit.set_format(not no_format).generate()
        if output is None:
            typer.echo(bindings.to_text(), nl=False)
        else:
            bindings.write_to_file(output)
            typer.echo(f"wrote {output}", err=True)
    except AbigenError as e:
        _fail(ctx, e)


def _batch(c: Ctx, abi_dir: Path, single_file: bool) -> MultiAbigen:
    gen = MultiAbigen.from_json_files(abi_dir, config=c.config)
    return gen.single_file() if single_file else gen


@app.command("module")
def module(
    ctx: typer.Context,
    abi_dir: Path = typer.Argument(..., help="Directory of *.json / *.abi files."),
    out_dir: Path = typer.Argument(..., help="Module directory to write."),
    single_file: bool = typer.Option(False, "--single-file", help="Put every contract into mod.py."),
) -> None:
    """Generate bindings for every ABI in a directory into one module."""
    c = _ctx(ctx)
    try:
        gen = _batch(c, abi_dir, single_file)
        gen.write_to_module(out_dir)
    except AbigenError as e:
        _fail(ctx, e)
    typer.echo(f"wrote {len(gen.abigens)} contract(s) to {out_dir}")


@app.command("check")
def check(
    ctx: typer.Context,
    abi_dir: Path = typer.Argument(..., help="Directory of *.json / *.abi files."),
    out_dir: Path = typer.Argument(..., help="Committed module directory to compare against."),
    single_file: bool = typer.Option(False, "--single-file", help="The module was generated with --single-file."),
) -> None:
    """Exit 1 if the committed bindings differ from a fresh generation."""
    c = _ctx(ctx)
    try:
        drift = diff_bindings(_batch(c, abi_dir, single_file), out_dir)
    except AbigenError as e:
        _fail(ctx, e)
    if not drift:
        typer.echo("bindings are up to date")
        return
    for d in drift:
        typer.echo(d.describe(), err=True)
    typer.echo(f"{len(drift)} file(s) out of date; run `abigen module {abi_dir} {out_dir}`", err=True)
    raise typer.Exit(code=EXIT_STALE)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="abigen", standalone_mode=False, args=argv)
    except typer.Exit as e:
        return int(e.exit_code)
    except AbigenError as e:
        typer.echo(f"error: {e}", err=True)
        return EXIT_ERROR
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1
    return rv if isinstance(rv, int) else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
