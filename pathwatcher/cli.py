import logging
import os
import signal
import threading

import click
from rich.console import Console
from rich.table import Table
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from pathwatcher import PathwatcherError
from pathwatcher import config
from pathwatcher import dispatcher
from pathwatcher import logger as pw_logger
from pathwatcher.notify import subscribe

log = logging.getLogger("pathwatcher")


@click.group(invoke_without_command=True)
@click.option("--config", "-c", "config_path", default=None, help="Path to configuration YAML file.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also write logs to this file.")
@click.pass_context
def main(ctx, config_path, debug, log_file):
    """
    Pathwatcher CLI: Log changes to the configured files and directories.

    Runs `watch` when no command is given.
    """
    log_dir, log_filename = (os.path.split(os.path.abspath(log_file)) if log_file else (None, None))
    pw_logger.setup_logger(
        "pathwatcher",
        level=logging.DEBUG if debug else logging.INFO,
        log_dir=log_dir,
        log_filename=log_filename,
    )
    ctx.obj = {"config_path": config.resolve_config_path(config_path), "debug": debug}
    if ctx.invoked_subcommand is None:
        ctx.invoke(watch)


def load_configuration(ctx):
    try:
        return config.load_or_create_default(ctx.obj["config_path"])
    except PathwatcherError as e:
        log.error("%s", e)
        ctx.exit(1)


@main.command()
@click.option("--polling", is_flag=True, help="Poll the filesystem instead of using OS notifications.")
@click.pass_context
def watch(ctx, polling=False):
    """
    Watch every configured path until terminated.
    """
    cfg = load_configuration(ctx)
    log.debug("Watching %d path(s) from %s", len(cfg.paths), ctx.obj["config_path"])

    try:
        subscription = subscribe(PollingObserver if polling else Observer)
        handle = dispatcher.start(cfg, subscription)
    except PathwatcherError as e:
        log.error("%s", e)
        ctx.exit(1)

    stop_event = threading.Event()

    def request_stop(signum, frame):
        log.debug("Received signal %s, shutting down", signum)
        stop_event.set()

    previous = {sig: signal.signal(sig, request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    log.debug("Watching until terminated")
    try:
        dispatcher.block_until_stopped(stop_event)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        handle.close()


@main.command()
@click.pass_context
def init_config(ctx):
    """
    Create the default configuration file if it does not exist.
    """
    config_path = ctx.obj["config_path"]
    try:
        created = config.create_default_config(config_path)
    except PathwatcherError as e:
        log.error("%s", e)
        ctx.exit(1)
    if created:
        click.echo(f"Configuration created at {config_path}")
    else:
        click.echo(f"Configuration already exists at {config_path}")


@main.command()
@click.pass_context
def show_config(ctx):
    """
    Show the watched paths.
    """
    cfg = load_configuration(ctx)
    table = Table(title=f"Watched Paths ({ctx.obj['config_path']})")
    table.add_column("#", style="cyan")
    table.add_column("Path", style="magenta")
    table.add_column("Exists", style="green")
    for idx, path in enumerate(cfg.paths, start=1):
        table.add_row(str(idx), path, "yes" if os.path.exists(path) else "no")
    Console().print(table)


if __name__ == "__main__":
    main()
