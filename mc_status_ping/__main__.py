"""Entry point for mc-status-ping.

Run with:  python -m mc_status_ping [--config /path/to/config.yaml] [HOST[:PORT] ...]
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import json
import logging
import sys

from . import __version__
from .client import async_ping
from .config import AppConfig, ConfigError, TargetConfig, load_config, parse_target
from .errors import StatusPingError
from .logger import setup_logging
from .status import ServerStatus

log = logging.getLogger("mc_status_ping")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mc-status-ping",
        description="Query Minecraft Java Edition servers for their status.",
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="HOST[:PORT]",
        help="Servers to query (default: the targets listed in the config file)",
    )
    parser.add_argument("-c", "--config", help="Path to YAML config file")
    parser.add_argument("-t", "--timeout", type=float, help="Per-operation timeout in seconds")
    parser.add_argument(
        "-p", "--protocol-version", type=int, help="Protocol version sent in the handshake"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print each status document as JSON"
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> tuple[AppConfig, list[TargetConfig]]:
    """Merge the config file (if any) with command-line overrides."""
    cfg = load_config(args.config) if args.config else AppConfig()
    if args.timeout is not None:
        if args.timeout <= 0:
            raise ConfigError("--timeout must be positive.")
        cfg.query.timeout_seconds = args.timeout
    if args.protocol_version is not None:
        cfg.query.protocol_version = args.protocol_version

    if args.targets:
        targets = [parse_target(t, cfg.query.default_port) for t in args.targets]
    else:
        targets = list(cfg.targets.values())
    if not targets:
        raise ConfigError("No targets given on the command line or in the config file.")
    return cfg, targets


def _summary(target: TargetConfig, status: ServerStatus) -> str:
    motd = " ".join(status.motd.split())
    return (
        f"{target.name} ({target.host}:{target.port}): {status.version.name} "
        f"[protocol {status.version.protocol}] "
        f"{status.players.online}/{status.players.max} players - {motd}"
    )


async def _query(cfg: AppConfig, target: TargetConfig) -> ServerStatus | None:
    """Query one target; failures are logged and reported as None."""
    try:
        return await async_ping(
            target.host,
            target.port,
            timeout=cfg.query.timeout_seconds,
            protocol_version=cfg.query.protocol_version,
            strict=cfg.query.strict_packet_id,
            max_packet_length=cfg.query.max_packet_bytes,
        )
    except (StatusPingError, OSError) as exc:
        log.error("%s (%s:%d): %s: %s", target.name, target.host, target.port, type(exc).__name__, exc)
        return None


async def _run(cfg: AppConfig, targets: list[TargetConfig], as_json: bool) -> int:
    """Query every target concurrently and print the results."""
    log.debug("Querying %d server(s)", len(targets))
    results = await asyncio.gather(*(_query(cfg, t) for t in targets))

    failed = 0
    for target, status in zip(targets, results):
        if status is None:
            failed += 1
        elif as_json:
            try:
                line = json.dumps(
                    {"target": target.name, **dataclasses.asdict(status)}, ensure_ascii=False
                )
            except RecursionError:
                # asdict and json.dumps recurse into the description.
                log.error("%s: status document is nested too deeply to print", target.name)
                failed += 1
                continue
            print(line)
        else:
            print(_summary(target, status))
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    """Synchronous wrapper that sets up logging, then runs the async queries."""
    # Minimal logging before config is loaded so early errors are visible.
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(message)s",
        stream=sys.stderr,
    )
    args = _parse_args(argv)

    try:
        cfg, targets = _build_config(args)
    except ConfigError as exc:
        log.critical("Configuration error: %s", exc)
        return 2

    setup_logging(cfg.logging)

    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(_run(cfg, targets, args.json))
    return 130


if __name__ == "__main__":
    sys.exit(main())
