#!/usr/bin/env python3
"""
Command line entry point.

    liquid-democracy deploy-dao 0xTemplateAddress [--plan plan.json] [--id my-dao]
    liquid-democracy deploy-template --artifact LiquidDemocracyTemplate.json \\
        DAO_FACTORY ENS MINIME_FACTORY ARAGON_ID
    liquid-democracy show-plan [--plan plan.json]

Only the deployed address is written to stdout; progress and errors are
logged to stderr (and LOG_FILE when set).
"""

import sys
import json
import logging
import argparse
from typing import List, Optional

from eth_utils import is_address, to_checksum_address

from . import __version__
from .abis import load_abi, load_artifact
from .config import Settings, connect, local_account
from .deployer import deploy_dao
from .errors import LiquidDemocracyError
from .template import LiquidDemocracyTemplate, TransactionSender, deploy_template
from .units import resolve_plan

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _address(value: str) -> str:
    if not is_address(value.lower()):
        raise argparse.ArgumentTypeError(f"not an address: {value!r}")
    return to_checksum_address(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='liquid-democracy', description="Deploy liquid democracy DAOs")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--env-file', help="dotenv file to load instead of ./.env")
    subparsers = parser.add_subparsers(dest='command', required=True)

    dao = subparsers.add_parser('deploy-dao', help="deploy a DAO from a deployed template")
    dao.add_argument('template', type=_address, help="LiquidDemocracyTemplate address")
    dao.add_argument('--plan', help="JSON deployment plan (default: built-in plan)")
    id_group = dao.add_mutually_exclusive_group()
    id_group.add_argument('--id', dest='dao_id', help="DAO id to register")
    id_group.add_argument('--random-id', action='store_true', help="register under a fresh random id")

    template = subparsers.add_parser('deploy-template', help="deploy the template contract")
    template.add_argument('--artifact', required=True, help="compiled LiquidDemocracyTemplate artifact")
    template.add_argument('dao_factory', type=_address)
    template.add_argument('ens', type=_address)
    template.add_argument('minime_factory', type=_address)
    template.add_argument('aragon_id', type=_address)

    show = subparsers.add_parser('show-plan', help="print the resolved deployment plan")
    show.add_argument('--plan', help="JSON deployment plan (default: built-in plan)")
    show_id = show.add_mutually_exclusive_group()
    show_id.add_argument('--id', dest='dao_id')
    show_id.add_argument('--random-id', action='store_true')

    return parser


def _sender(w3, settings: Settings) -> TransactionSender:
    return TransactionSender(
        w3,
        account=local_account(w3, settings),
        sender=settings.deployer_address,
        gas_price=settings.gas_price,
        gas=settings.gas_limit,
        receipt_timeout=settings.receipt_timeout,
    )


def cmd_deploy_dao(args, settings: Settings) -> int:
    plan = resolve_plan(args.plan, args.dao_id, args.random_id)
    w3 = connect(settings)
    template = LiquidDemocracyTemplate(w3, args.template, sender=_sender(w3, settings))
    result = deploy_dao(template, plan, load_abi('DAOFactory'))
    print(result.dao)
    return 0


def cmd_deploy_template(args, settings: Settings) -> int:
    artifact = load_artifact(args.artifact)
    w3 = connect(settings)
    address = deploy_template(
        w3, artifact,
        [args.dao_factory, args.ens, args.minime_factory, args.aragon_id],
        sender=_sender(w3, settings),
    )
    print(address)
    return 0


def cmd_show_plan(args, settings: Settings) -> int:
    plan = resolve_plan(args.plan, args.dao_id, args.random_id)
    print(json.dumps(plan.to_dict(), indent=2))
    return 0


COMMANDS = {
    'deploy-dao': cmd_deploy_dao,
    'deploy-template': cmd_deploy_template,
    'show-plan': cmd_show_plan,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env(args.env_file)
    except LiquidDemocracyError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1
    configure_logging(settings.log_level, settings.log_file)

    try:
        return COMMANDS[args.command](args, settings)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130
    except (LiquidDemocracyError, ConnectionError) as e:
        logger.error(f"{args.command} failed: {e}")
        if e.__cause__ is not None:
            logger.debug("Caused by", exc_info=e.__cause__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
