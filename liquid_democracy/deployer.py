"""
Deploy a DAO from a DeploymentPlan.

The steps run strictly one after another, each waiting for the previous
transaction to be mined:

1. prepareInstance creates the DAO with the management token and voting
2. installDepartment + distributeDepartmentTokens, once per department
3. finalizeInstance registers the DAO id and mints management tokens
4. the DeployDAO event of the prepare receipt gives the DAO address

There is no retry and no rollback. A failing step leaves the DAO partially
configured; the DeploymentError raised lists the steps that completed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .abis import load_abi
from .apps import installed_apps_by_name
from .errors import DeploymentError, EventNotFoundError, LiquidDemocracyError
from .events import decode_events
from .units import DeploymentPlan

logger = logging.getLogger(__name__)


@dataclass
class DeploymentResult:
    dao: str
    dao_id: str
    receipts: List[Tuple[str, Mapping[str, Any]]] = field(default_factory=list)
    installed_apps: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def steps(self) -> List[str]:
        return [step for step, _ in self.receipts]


def dao_address(receipt: Mapping[str, Any], dao_factory_abi: Optional[Sequence[Mapping[str, Any]]] = None) -> str:
    """Address from the first DeployDAO event in ``receipt``."""
    events = decode_events(receipt, dao_factory_abi or load_abi('DAOFactory'), 'DeployDAO')
    if not events:
        raise EventNotFoundError('DeployDAO', "Receipt has no DeployDAO event")
    if len(events) > 1:
        logger.warning(f"Receipt has {len(events)} DeployDAO events, using the first")
    return events[0].args['dao']


def deploy_dao(template, plan: DeploymentPlan,
               dao_factory_abi: Optional[Sequence[Mapping[str, Any]]] = None) -> DeploymentResult:
    """Run the whole deployment sequence for ``plan`` against ``template``."""
    receipts: List[Tuple[str, Mapping[str, Any]]] = []

    def run(step: str, call, *args):
        logger.info(f"[{len(receipts) + 1}] {step}")
        try:
            receipt = call(*args)
        except Exception as e:
            logger.error(f"{step} failed: {e}")
            raise DeploymentError(step, [s for s, _ in receipts], str(e)) from e
        receipts.append((step, receipt))
        return receipt

    logger.info(f"Deploying DAO {plan.dao_id!r} with {len(plan.departments)} department(s)")

    prepare_receipt = run(
        f"prepareInstance {plan.management.symbol}",
        template.prepare_instance, plan.management, plan.management_voting, plan.token_index,
    )

    for dept in plan.departments:
        run(f"installDepartment {dept.symbol}",
            template.install_department, dept, plan.voting_for(dept), plan.token_index)
        run(f"distributeDepartmentTokens {dept.symbol}",
            template.distribute_department_tokens, dept.members, dept.stakes)

    run(f"finalizeInstance {plan.dao_id}",
        template.finalize_instance, plan.dao_id, plan.management.members, plan.management.stakes,
        plan.token_index, plan.finalize_flag)

    try:
        dao = dao_address(prepare_receipt, dao_factory_abi)
    except LiquidDemocracyError as e:
        logger.error(f"Could not read DAO address: {e}")
        raise DeploymentError('DeployDAO', [s for s, _ in receipts], str(e)) from e
    logger.info(f"DAO deployed at {dao}")

    # the DAO exists at this point; app lookup is informational only
    try:
        apps = installed_apps_by_name(prepare_receipt)
    except LiquidDemocracyError as e:
        logger.warning(f"Could not list installed apps: {e}")
        apps = {}

    return DeploymentResult(
        dao=dao,
        dao_id=plan.dao_id,
        receipts=receipts,
        installed_apps=apps,
    )
