from __future__ import annotations

import logging
from typing import Dict, List, Optional
from xml.etree.ElementTree import Element

from gateway_inspector.models import MatchInfo, MatchOperator
from gateway_inspector.parsing.document import ConfigDocument, elem_text, select, text_content

logger = logging.getLogger(__name__)

MATCHING_TAG = "Matching"


def policy_rule_match_name(policy_map: Element) -> Optional[str]:
    return elem_text(policy_map, "Match")


def matching_operator(matching: Element) -> MatchOperator:
    if elem_text(matching, "CombineWithOr") == "on":
        return "or"
    return "and"


def inspect_matching_rule(matching_rule: Element) -> Dict[str, str]:
    # Captured verbatim; empty criteria are left out.
    info: Dict[str, str] = {}
    for child in select(matching_rule, "*"):
        value = text_content(child)
        if value == "":
            continue
        info[child.tag.lower()] = value
    return info


def inspect_matching_rules(matching: Element) -> List[Dict[str, str]]:
    return [inspect_matching_rule(rule) for rule in select(matching, "MatchRules")]


def inspect_policy_rule_match(document: ConfigDocument, match_name: str) -> MatchInfo:
    matching = document.find_named(MATCHING_TAG, match_name)
    if matching is None:
        logger.warning("Matching %s is not defined, recording it without rules", match_name)
        return MatchInfo(operator="and", rules=[])

    return MatchInfo(
        operator=matching_operator(matching),
        rules=inspect_matching_rules(matching),
    )
