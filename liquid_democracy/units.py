"""
Organizational units, voting settings and deployment plans.

Amounts follow the on-chain conventions of the template: token stakes are
integer base units (``100000 * 10**18`` is 100,000 tokens with 18 decimals)
and voting fractions use ``10**18`` for 100%, so ``50 * PCT`` is 50%.
"""

import json
import random
import logging
from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_utils import to_checksum_address, is_hex_address

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PCT = 10 ** 16
DAYS = 24 * 3600
WEEKS = 7 * DAYS


def parse_amount(value: Any) -> int:
    """Convert an integer amount given as int, Decimal or numeric string.

    Strings may use scientific notation (``"100000e18"``); the conversion is
    exact and rejects values with a fractional part.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid amount: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigurationError(f"Invalid amount: {value!r}")
    if not number.is_finite() or number != number.to_integral_value():
        raise ConfigurationError(f"Amount must be a whole number: {value!r}")
    return int(number)


@dataclass(frozen=True)
class VotingSettings:
    """Support required, minimum acceptance quorum and vote duration."""

    support_required: int
    min_acceptance_quorum: int
    duration: int

    def as_list(self) -> List[int]:
        return [self.support_required, self.min_acceptance_quorum, self.duration]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VotingSettings":
        try:
            return cls(
                support_required=parse_amount(data["support_required"]),
                min_acceptance_quorum=parse_amount(data["min_acceptance_quorum"]),
                duration=parse_amount(data["duration"]),
            )
        except KeyError as e:
            raise ConfigurationError(f"Voting settings missing key {e}")
        except TypeError:
            raise ConfigurationError(f"Voting settings must be an object, got {data!r}")


@dataclass(frozen=True)
class UnitDescriptor:
    """A management unit or department: its token and initial holders.

    ``members`` and ``stakes`` are parallel lists. Their lengths are not
    checked here; the template contract rejects mismatches.
    """

    name: str
    symbol: str
    decimals: int
    members: Tuple[str, ...] = ()
    stakes: Tuple[int, ...] = ()
    transferable: bool = False
    delegable: bool = True

    def __post_init__(self):
        object.__setattr__(self, "members", tuple(to_checksum_address(m) for m in self.members))
        object.__setattr__(self, "stakes", tuple(self.stakes))

    def token_args(self) -> Tuple[str, str, int, bool, bool]:
        return (self.name, self.symbol, self.decimals, self.transferable, self.delegable)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnitDescriptor":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Unit descriptor must be an object, got {data!r}")
        missing = [k for k in ("name", "symbol", "decimals") if k not in data]
        if missing:
            raise ConfigurationError(f"Unit descriptor missing keys: {', '.join(missing)}")

        members = data.get("members", [])
        stakes = data.get("stakes", [])
        for key, value in (("members", members), ("stakes", stakes)):
            if not isinstance(value, list):
                raise ConfigurationError(f"{key} of {data['name']!r} must be a list, got {value!r}")
        for member in members:
            if not isinstance(member, str) or not is_hex_address(member):
                raise ConfigurationError(f"Invalid member address in {data['name']!r}: {member!r}")

        return cls(
            name=str(data["name"]),
            symbol=str(data["symbol"]),
            decimals=parse_amount(data["decimals"]),
            members=tuple(members),
            stakes=tuple(parse_amount(s) for s in stakes),
            transferable=bool(data.get("transferable", False)),
            delegable=bool(data.get("delegable", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["members"] = list(self.members)
        data["stakes"] = [str(s) for s in self.stakes]
        return data


@dataclass(frozen=True)
class DeploymentPlan:
    """Everything needed to deploy one DAO instance from the template."""

    dao_id: str
    management: UnitDescriptor
    departments: Tuple[UnitDescriptor, ...]
    management_voting: VotingSettings
    department_voting: VotingSettings
    department_voting_overrides: Dict[str, VotingSettings] = field(default_factory=dict)
    token_index: int = 0
    finalize_flag: bool = True

    def __post_init__(self):
        object.__setattr__(self, "departments", tuple(self.departments))

    def voting_for(self, department: UnitDescriptor) -> VotingSettings:
        return self.department_voting_overrides.get(department.symbol, self.department_voting)

    def with_id(self, dao_id: str) -> "DeploymentPlan":
        return DeploymentPlan(
            dao_id=dao_id,
            management=self.management,
            departments=self.departments,
            management_voting=self.management_voting,
            department_voting=self.department_voting,
            department_voting_overrides=dict(self.department_voting_overrides),
            token_index=self.token_index,
            finalize_flag=self.finalize_flag,
        )

    def to_dict(self) -> Dict[str, Any]:
        departments = []
        for dept in self.departments:
            entry = dept.to_dict()
            if dept.symbol in self.department_voting_overrides:
                entry["voting"] = _voting_to_dict(self.department_voting_overrides[dept.symbol])
            departments.append(entry)
        return {
            "id": self.dao_id,
            "token_index": self.token_index,
            "finalize_flag": self.finalize_flag,
            "management": self.management.to_dict(),
            "management_voting": _voting_to_dict(self.management_voting),
            "department_voting": _voting_to_dict(self.department_voting),
            "departments": departments,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentPlan":
        if not isinstance(data, dict):
            raise ConfigurationError("Deployment plan must be a JSON object")
        for key in ("id", "management", "management_voting", "department_voting"):
            if key not in data:
                raise ConfigurationError(f"Deployment plan missing key {key!r}")

        departments = []
        overrides = {}
        if not isinstance(data.get("departments", []), list):
            raise ConfigurationError("Deployment plan departments must be a list")
        for entry in data.get("departments", []):
            dept = UnitDescriptor.from_dict(entry)
            if "voting" in entry:
                overrides[dept.symbol] = VotingSettings.from_dict(entry["voting"])
            departments.append(dept)

        return cls(
            dao_id=str(data["id"]),
            management=UnitDescriptor.from_dict(data["management"]),
            departments=tuple(departments),
            management_voting=VotingSettings.from_dict(data["management_voting"]),
            department_voting=VotingSettings.from_dict(data["department_voting"]),
            department_voting_overrides=overrides,
            token_index=parse_amount(data.get("token_index", 0)),
            finalize_flag=bool(data.get("finalize_flag", True)),
        )


def _voting_to_dict(settings: VotingSettings) -> Dict[str, str]:
    return {k: str(v) for k, v in asdict(settings).items()}


def load_plan(path: str) -> DeploymentPlan:
    """Read a deployment plan from a JSON file."""
    try:
        with open(path, 'r') as f:
            data = json.load(f, parse_float=Decimal)
    except FileNotFoundError:
        raise ConfigurationError(f"Plan file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Plan file {path} is not valid JSON: {e}")
    plan = DeploymentPlan.from_dict(data)
    logger.info(f"Loaded plan {plan.dao_id!r} from {path} with {len(plan.departments)} department(s)")
    return plan


def random_dao_id(prefix: str = "liquid-democracy") -> str:
    """A fresh identifier, since each registered DAO name must be unique."""
    return f"{prefix}-{random.getrandbits(48):012x}"


def _equal_stakes(members: Sequence[str], amount: int = 100000 * 10 ** 18) -> Tuple[int, ...]:
    return tuple(amount for _ in members)


_EXECUTIVE_MEMBERS = (
    '0x27644a3F5D51dEA8705DC7FB1CD67100D73273B1',
    '0xa52422BB8c29E4d55243d310fB6BAe793162452e',
    '0xFd90411B0c246743aE0000BB18c723A3BB909Dee',
)

_DEPARTMENT_MEMBERS = {
    "INT": ('0x27644a3F5D51dEA8705DC7FB1CD67100D73273B1',
            '0xa52422BB8c29E4d55243d310fB6BAe793162452e',
            '0x04EcEB77965BB426C54EE70d7fcEB2a9bDBdAfed'),
    "EDU": ('0xFd90411B0c246743aE0000BB18c723A3BB909Dee',
            '0xa52422BB8c29E4d55243d310fB6BAe793162452e',
            '0x04EcEB77965BB426C54EE70d7fcEB2a9bDBdAfed',
            '0x27644a3F5D51dEA8705DC7FB1CD67100D73273B1'),
    "DOD": ('0xFd90411B0c246743aE0000BB18c723A3BB909Dee',
            '0x99d0cc84a9b00bbB596463a415631886b02a9a70',
            '0x27644a3F5D51dEA8705DC7FB1CD67100D73273B1'),
    "EPA": ('0x2B7cFb1aA760d5050F5096d8fa123980Cb874EcC',
            '0x04EcEB77965BB426C54EE70d7fcEB2a9bDBdAfed',
            '0x27644a3F5D51dEA8705DC7FB1CD67100D73273B1',
            '0xa52422BB8c29E4d55243d310fB6BAe793162452e'),
}

_DEPARTMENT_NAMES = {
    "INT": "Department of the Interior",
    "EDU": "Department of Education",
    "DOD": "Department of Defense",
    "EPA": "Environmental Protection Agency",
}

MANAGEMENT = UnitDescriptor(
    name="Executive",
    symbol="EXEC",
    decimals=18,
    members=_EXECUTIVE_MEMBERS,
    stakes=_equal_stakes(_EXECUTIVE_MEMBERS),
    transferable=False,
    delegable=True,
)

DEPARTMENTS = tuple(
    UnitDescriptor(
        name=_DEPARTMENT_NAMES[symbol],
        symbol=symbol,
        decimals=18,
        members=members,
        stakes=_equal_stakes(members),
        transferable=False,
        delegable=True,
    )
    for symbol, members in _DEPARTMENT_MEMBERS.items()
)

MANAGEMENT_VOTING = VotingSettings(support_required=50 * PCT, min_acceptance_quorum=40 * PCT, duration=WEEKS)
DEPARTMENT_VOTING = VotingSettings(support_required=50 * PCT, min_acceptance_quorum=5 * PCT, duration=WEEKS)

DEFAULT_PLAN = DeploymentPlan(
    dao_id="usa-federal-government",
    management=MANAGEMENT,
    departments=DEPARTMENTS,
    management_voting=MANAGEMENT_VOTING,
    department_voting=DEPARTMENT_VOTING,
)


def resolve_plan(path: Optional[str] = None, dao_id: Optional[str] = None,
                 randomize_id: bool = False) -> DeploymentPlan:
    """Load ``path`` (or the default plan) and apply an id override."""
    plan = load_plan(path) if path else DEFAULT_PLAN
    if dao_id:
        plan = plan.with_id(dao_id)
    elif randomize_id:
        plan = plan.with_id(random_dao_id())
    return plan
