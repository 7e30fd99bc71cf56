from __future__ import annotations

import logging
from typing import Any, Dict

from gateway_inspector.models import GATEWAY_KINDS

logger = logging.getLogger(__name__)

SEC = "Security"
ROU = "Routing"
XFM = "Transformation"
VAL = "Validation"
LOG = "Logging"
OTH = "Other"

NAMES = {
    "SEC": SEC,
    "ROU": ROU,
    "XFM": XFM,
    "VAL": VAL,
    "LOG": LOG,
    "OTH": OTH,
}

# ARGB fill colors used by the report.
COLORS = {
    SEC: "ffe06666",
    ROU: "ff3c78d8",
    XFM: "ffb45f06",
    VAL: "ff9fc5e8",
    LOG: "ff783f04",
    OTH: "ffd9d9d9",
}

# Column alias prefixes, e.g. "sec-3".
ABBR = {
    SEC: "sec",
    ROU: "route",
    XFM: "xform",
    VAL: "val",
    LOG: "log",
    OTH: "other",
}

BY_ACTION_TYPE = {
    "convert-http": XFM,
    "slm": ROU,
    "call": OTH,
    "setvar": ROU,
    "gatewayscript": XFM,
    "method-rewrite": XFM,
    "fetch": XFM,
    "aaa": SEC,
    "route-action": ROU,
    "route-set": ROU,
    "xformbin": XFM,
    "xformng": XFM,
    "xformpi": XFM,
    "xform": XFM,
    "jose-decrypt": SEC,
    "decrypt": SEC,
    "jose-encrypt": SEC,
    "encrypt": SEC,
    "jose-verify": VAL,
    "jose-sign": VAL,
    "sign": VAL,
    "verify": VAL,
    "filter": XFM,
    "validate": VAL,
    "antivirus": SEC,
    "log": LOG,
    "on-error": ROU,
    "extract": XFM,
    "results": ROU,
    "results_output": ROU,
}


def category_for(action_type: str) -> str:
    category = BY_ACTION_TYPE.get(action_type)
    if category is None:
        logger.warning("Unknown action of type %s", action_type)
        return OTH
    return category


def group_actions_by_category(backup_info: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Regroup every reported action under its category.

    Result: {category: {"<policy>/<action>": {"direction", "info", "<kind key>": [{"name", "domain"}]}}}
    Categories and actions keep first-seen order.
    """
    by_category: Dict[str, Dict[str, Any]] = {}

    for domain_name, domain_info in backup_info.get("domains", {}).items():
        for kind in GATEWAY_KINDS:
            for gateway_name, gateway_info in domain_info.get(kind.key, {}).items():
                for policy_name, policy in gateway_info.get(kind.policy_key, {}).items():
                    for rule in policy.get("rules", {}).values():
                        for action in rule.get("actions", []):
                            action_type = next(iter(action))
                            action_info = action[action_type]
                            if not isinstance(action_info, dict):
                                # Flat record without a type key.
                                action_type, action_info = "", action

                            category = category_for(action_type)
                            actions = by_category.setdefault(category, {})

                            action_key = f"{policy_name}/{action_info.get('name')}"
                            entry = actions.setdefault(
                                action_key,
                                {
                                    "direction": rule.get("direction"),
                                    "info": action_info,
                                    kind.key: [],
                                },
                            )
                            entry.setdefault(kind.key, []).append(
                                {"name": gateway_name, "domain": domain_name}
                            )

    return by_category


def category_table() -> Dict[str, Dict[str, str]]:
    """Category name -> alias prefix and color."""
    return {name: {"abbr": ABBR[name], "color": COLORS[name]} for name in NAMES.values()}
