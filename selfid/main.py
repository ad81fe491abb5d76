"""
SelfID — Entry Point

Loads configuration, configures logging, and stands up a ledger with an
identity factory on it.

Usage:
    python -m selfid.main --config config/selfid.yaml
    selfid --config config/selfid.yaml --owner alice --owner bob

Each --owner gets a fresh ledger account and an identity whose bootstrap
Management key is that account; their addresses are printed one per line.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

import structlog

from selfid.config import SelfIDConfig, load_config
from selfid.systems.identity import IdentityFactory
from selfid.systems.ledger import Ledger
from selfid.telemetry import setup_logging

logger = structlog.get_logger("selfid.main")


@dataclass
class SelfIDRuntime:
    config: SelfIDConfig
    ledger: Ledger
    factory: IdentityFactory


def bootstrap(config: SelfIDConfig) -> SelfIDRuntime:
    """Wire logging, the ledger, and the factory from a loaded config."""
    setup_logging(config.logging, instance_name=config.instance_name, chain_id=config.ledger.chain_id)
    ledger = Ledger(config.ledger)
    factory = IdentityFactory(ledger, config.identity)
    logger.info(
        "selfid_ready",
        chain_id=ledger.chain_id,
        approval_threshold=config.identity.approval_threshold,
    )
    return SelfIDRuntime(config=config, ledger=ledger, factory=factory)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Stand up SelfID identities on an in-process ledger")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument(
        "--owner",
        action="append",
        default=None,
        help="Label of an owner account to create an identity for (repeatable)",
    )
    args = parser.parse_args(argv)

    runtime = bootstrap(load_config(args.config))
    for label in args.owner or ["owner"]:
        owner = runtime.ledger.new_address(label)
        identity = runtime.factory.create_identity(sender=owner)
        print(f"{label} {owner} {identity.address}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
