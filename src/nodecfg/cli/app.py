# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/cli/app.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml

from nodecfg.config.errors import ConfigError, InsufficientSpaceError, MalformedFieldError
from nodecfg.config.loader import load_config
from nodecfg.config.registry import default_registry
from nodecfg.config.validate import validate_config
from nodecfg.logging.log import init_logging
from nodecfg.machine.disks import DiskInfo, check_disks, plan_partitions
from nodecfg.machine.registries import registry_host, summarize
from nodecfg.utils.serialize import to_jsonable

# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Machine configuration tooling")

log = logging.getLogger("nodecfg")

_state: Dict[str, object] = {"verbose": False, "log_dir": None}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug output on the console"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Where run logs are written"),
) -> None:
    _state["verbose"] = verbose
    _state["log_dir"] = log_dir


def _setup_logging() -> logging.Logger:
    logger, _ = init_logging(
        base_dir=_state["log_dir"],  # type: ignore[arg-type]
        verbose=bool(_state["verbose"]),
    )
    return logger


def _load(config: Path):
    try:
        return load_config(config)
    except MalformedFieldError as exc:
        for err in exc.errors:
            typer.echo(f"malformed: {err}", err=True)
        raise typer.Exit(code=1)
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)


def parse_disk_flag(values: List[str]) -> List[DiskInfo]:
    """
    Parse --disk flags.

    --disk /dev/sdb=500000000
    --disk /dev/sdb=500000000 --disk /dev/sdc=1000000000
    """
    out: List[DiskInfo] = []
    for v in values:
        name, sep, size = v.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected DEVICE=BYTES, got {v!r}")
        try:
            out.append(DiskInfo(device_name=name, size=int(size)))
        except ValueError:
            raise typer.BadParameter(f"size for {name} is not an integer: {size!r}")
    return out


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def validate(config: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """
    Decode CONFIG and report every violation found.
    """
    logger = _setup_logging()
    cfg = _load(config)

    violations = validate_config(cfg)
    for v in violations:
        typer.echo(str(v))

    if violations:
        logger.error("%s: %d violation(s)", config, len(violations))
        raise typer.Exit(code=1)

    logger.info("%s: ok (%s)", config, cfg.version)


@app.command()
def show(config: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """
    Print the decoded document as YAML.
    """
    _setup_logging()
    cfg = _load(config)
    typer.echo(yaml.safe_dump(to_jsonable(cfg), sort_keys=False), nl=False)


@app.command()
def registry(
    config: Path = typer.Argument(..., exists=True, dir_okay=False),
    image: str = typer.Argument(..., help="Image reference, e.g. ghcr.io/org/app:1.0"),
) -> None:
    """
    Show mirrors, credential form and TLS settings used to pull IMAGE.
    """
    _setup_logging()
    cfg = _load(config)
    registries = cfg.machine.registries if cfg.machine else None
    host = registry_host(image)

    if registries is None:
        typer.echo(f"{host}: direct, anonymous")
        return

    info = summarize(registries, host)
    typer.echo(yaml.safe_dump(info, sort_keys=False), nl=False)


@app.command()
def partitions(
    config: Path = typer.Argument(..., exists=True, dir_okay=False),
    disk: List[str] = typer.Option([], "--disk", help="DEVICE=BYTES as reported by the node"),
) -> None:
    """
    Print the partition plan of every configured disk.
    """
    logger = _setup_logging()
    cfg = _load(config)
    disks = cfg.machine.disks if cfg.machine else []
    discovered = parse_disk_flag(disk)

    problems = check_disks(disks, discovered)
    for v in problems:
        typer.echo(str(v), err=True)
    if problems:
        raise typer.Exit(code=1)

    sizes = {d.device_name: d.size for d in discovered}
    for d in disks:
        try:
            plan = plan_partitions(d, sizes[d.device])
        except InsufficientSpaceError as exc:
            logger.error("%s", exc)
            raise typer.Exit(code=1)

        typer.echo(f"{plan.device} ({plan.capacity} bytes)")
        for p in plan.partitions:
            typer.echo(f"  {p.number}: {p.mountpoint} start={p.start} size={p.size}")


@app.command()
def versions() -> None:
    """
    List the config versions this build understands.
    """
    for v in default_registry().versions():
        typer.echo(v)


if __name__ == "__main__":
    app()
