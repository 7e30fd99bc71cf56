from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from xml.etree.ElementTree import Element

from gateway_inspector.actions.handlers import (
    ActionExtractor,
    ExtractionContext,
    default_registry,
)
from gateway_inspector.actions.types import lookup_key, resolve_type, type_alias
from gateway_inspector.config.paths import MAX_CONDITIONAL_DEPTH
from gateway_inspector.models import ActionRecord, FieldBag
from gateway_inspector.parsing.document import ConfigDocument, elem_text, select

logger = logging.getLogger(__name__)

ACTION_TAG = "StylePolicyAction"


def stylesheet_params(node: Element) -> List[Dict[str, Optional[str]]]:
    params = []
    for param in select(node, "StylesheetParameters"):
        params.append(
            {
                "name": elem_text(param, "ParameterName"),
                "value": elem_text(param, "ParameterValue"),
            }
        )
    return params


def add_params_field(action: FieldBag, node: Element) -> None:
    params = stylesheet_params(node)
    if not params:
        return
    action["params"] = params


def add_ssl_cred_field(action: FieldBag, node: Element) -> None:
    client_type = elem_text(node, "SSLClientConfigType")
    if not client_type:
        return

    credential = elem_text(node, "SSLCred") or elem_text(node, "SSLClientCred")
    if credential:
        action[f"ssl_{client_type}_profile"] = credential


def to_record(bag: FieldBag) -> ActionRecord:
    """{type: {name, ...}}; bags without a type pass through flat."""
    action_type = bag.get("type")
    if not action_type:
        return bag
    info = {key: value for key, value in bag.items() if key != "type"}
    return {action_type: info}


@dataclass
class ActionInspector:
    """
    Turns one action reference into zero or more action records.

    Conditional actions re-enter inspect(); the chain of names being
    expanded guards against cycles and runaway nesting.
    """
    extractors: Dict[str, ActionExtractor] = field(default_factory=default_registry)
    max_depth: int = MAX_CONDITIONAL_DEPTH

    def inspect(
        self,
        document: ConfigDocument,
        action_name: str,
        rule_name: str,
        *,
        chain: Tuple[str, ...] = (),
    ) -> List[ActionRecord]:
        if action_name in chain:
            logger.warning(
                "Cyclic conditional action %s (via %s), skipping this branch",
                action_name,
                " -> ".join(chain),
            )
            return []

        node = document.find_named(ACTION_TAG, action_name)
        if node is None:
            logger.warning("Policy rule action %s is not defined, skipping it", action_name)
            return []

        subtype_hint = (elem_text(node, "Type") or "").lower()
        action_type = resolve_type(action_name, rule_name, subtype_hint, self.extractors)
        if action_type is None:
            alias = type_alias(action_name, rule_name)
            tried = alias if not subtype_hint or subtype_hint == alias else f"{alias} (subtype {subtype_hint})"
            logger.warning("Unknown policy rule action of type: %s", tried)
            return []

        extractor = self.extractors[lookup_key(action_type)]
        ctx = ExtractionContext(
            document=document,
            rule_name=rule_name,
            inspector=self,
            chain=chain,
        )
        bags = extractor.extract({"name": action_name, "type": action_type}, node, ctx)

        results: List[ActionRecord] = []
        for bag in bags:
            if bag.get("type"):
                add_ssl_cred_field(bag, node)
                add_params_field(bag, node)
            results.append(to_record(bag))
        return results
