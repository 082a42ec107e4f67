#!/usr/bin/env python3
"""
NetCheck - site-to-site UDP latency and jitter probe
Starts the echo responder and the measurement scheduler.
"""

import logging
import signal
import sys
from pathlib import Path

import click

from netcheck.core.config import Config
from netcheck.core.logger import setup_logging
from netcheck.probe.aggregator import Aggregator
from netcheck.responder.echo_responder import EchoResponder
from netcheck.scheduler.round_scheduler import RoundScheduler
from netcheck.sink.influx_sink import InfluxSink

DEFAULT_CONFIG = '/etc/netcheck/config.toml'


@click.command()
@click.option('--config', '-c', default=DEFAULT_CONFIG,
              help='Configuration file path')
@click.option('--debug', '-d', is_flag=True, help='Use debug logging')
def main(config: str, debug: bool):
    """NetCheck - site-to-site UDP latency and jitter probe"""

    config_path = Path(config)
    if not config_path.exists():
        click.echo(f"Error: Configuration file {config} not found", err=True)
        sys.exit(1)

    try:
        cfg = Config.from_file(config_path)
        cfg.validate()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    log_level = logging.DEBUG if debug else getattr(logging, cfg.logging.level.upper(), logging.INFO)
    setup_logging(cfg.logging, log_level)

    logging.info(f"Starting NetCheck for site {cfg.local_site}")
    logging.info(f"Configuration loaded from {config_path}")

    try:
        run(cfg)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if debug:
            logging.exception("Full traceback:")
        sys.exit(1)


def run(config: Config) -> None:
    """Serve echoes and measure remote sites until a shutdown signal."""
    responder = EchoResponder(config.port)
    responder.start()

    sink = None
    try:
        sink = InfluxSink(config.influxdb)
        aggregator = Aggregator(config, sink)
        scheduler = RoundScheduler(
            config.remote_sites,
            aggregator,
            config.period,
            parallel=config.parallel_checks
        )

        def signal_handler(signum, frame):
            logging.info(f"Received signal {signum}, shutting down...")
            scheduler.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler.run()
    finally:
        responder.stop()
        if sink is not None:
            sink.close()
        logging.info("NetCheck stopped")


if __name__ == '__main__':
    main()
