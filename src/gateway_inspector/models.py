from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

# {type: {name, ...fields}} or a flat dict when the record carries no type.
ActionRecord = Dict[str, Any]
FieldBag = Dict[str, Any]

MatchOperator = Literal["and", "or"]


@dataclass(frozen=True)
class MatchInfo:
    operator: MatchOperator
    rules: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class RuleInfo:
    direction: Optional[str]
    condition: Dict[str, MatchInfo] = field(default_factory=dict)
    actions: List[ActionRecord] = field(default_factory=list)


@dataclass(frozen=True)
class GatewayKind:
    """Selects the node kinds one gateway family uses in an export."""
    # Key of this family in DomainInfo, e.g. "mpgs".
    key: str
    gateway_tag: str
    policy_tag: str
    rule_tag: str
    # Key holding the policy map in GatewayInfo.
    policy_key: str


MULTI_PROTOCOL_GATEWAY = GatewayKind(
    key="mpgs",
    gateway_tag="MultiProtocolGateway",
    policy_tag="StylePolicy",
    rule_tag="StylePolicyRule",
    policy_key="policy",
)

WEB_SERVICE_GATEWAY = GatewayKind(
    key="wsps",
    gateway_tag="WSGateway",
    policy_tag="WSStylePolicy",
    rule_tag="WSStylePolicyRule",
    policy_key="policies",
)

GATEWAY_KINDS = (MULTI_PROTOCOL_GATEWAY, WEB_SERVICE_GATEWAY)
