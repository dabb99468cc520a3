# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from grpl.config.loader import load_config
from grpl.helm.cli_runner import HelmCliRunner
from grpl.install.errors import InstallError
from grpl.install.sequencer import run_install
from grpl.kube.client import ClusterClient, KubeConnector, KubeError
from grpl.logging.log import init_logging
from grpl.observers.console import ConsoleObserver
from grpl.observers.dispatcher import EventBus
from grpl.observers.jsonfile import JsonFileObserver
from grpl.observers.logger import LoggerObserver
from grpl.observers.events import new_ctx


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Grapple installer CLI")


@app.callback()
def main() -> None:
    """Install the Grapple stack onto an existing cluster."""


# ------------------------------------------------------------------------------
# Install command
# ------------------------------------------------------------------------------

@app.command()
def install(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Install config YAML"),
    version: Optional[str] = typer.Option(None, "--version", help="Grapple version (default: latest)"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    kube_context: Optional[str] = typer.Option(None, "--kube-context"),
    install_kubeblocks: Optional[bool] = typer.Option(
        None,
        "--install-kubeblocks/--no-install-kubeblocks",
        help="Install KubeBlocks in the background",
    ),
    preload_images: Optional[bool] = typer.Option(
        None, "--preload-images/--no-preload-images", help="Preload Grapple images in the background",
    ),
    wait: Optional[bool] = typer.Option(
        None, "--wait/--no-wait", help="Wait for Grapple to be fully ready at the end",
    ),
    ssl_enable: Optional[bool] = typer.Option(None, "--ssl-enable/--no-ssl-enable"),
    debug: bool = typer.Option(False, "--debug"),
):
    logger, run_id, log_path = init_logging(verbose=debug)

    cfg = load_config(
        config,
        version=version,
        namespace=namespace,
        kube_context=kube_context,
        install_kubeblocks=install_kubeblocks,
        preload_images=preload_images,
        wait_for_ready=wait,
        ssl_enable=ssl_enable,
    )
    logger.debug("install config: %s", cfg.model_dump())

    typer.echo("")
    typer.secho("Grapple Install Started", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    bus = EventBus(observers=[
        ConsoleObserver(),
        LoggerObserver(logger),
        JsonFileObserver(log_path.with_suffix(".jsonl")),
    ])
    run_ctx = new_ctx(env=cfg.environment, context=cfg.kube_context, run_id=run_id)

    connector = KubeConnector(cfg.kube_context)
    try:
        cluster = ClusterClient.from_connector(connector)
    except KubeError as e:
        typer.secho(f"{e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        report = run_install(
            cfg,
            helm=HelmCliRunner(kube_context=cfg.kube_context),
            cluster=cluster,
            connector=connector,
            bus=bus,
            run_ctx=run_ctx,
            log_path=log_path,
        )
    except InstallError as e:
        logger.debug("install failed", exc_info=True)
        raise typer.Exit(code=1) from e

    for w in report.warnings:
        typer.secho(f"warning: {w}", fg=typer.colors.YELLOW)


if __name__ == "__main__":
    app()
