from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from xml.etree.ElementTree import Element

from gateway_inspector.actions.executor import ActionInspector
from gateway_inspector.config.paths import WORKERS
from gateway_inspector.models import GATEWAY_KINDS, ActionRecord, GatewayKind, RuleInfo
from gateway_inspector.parsing.archive import load_backup, parse_export, read_archive
from gateway_inspector.parsing.document import ConfigDocument, elem_text, select, text_content
from gateway_inspector.pipeline.matching import inspect_policy_rule_match, policy_rule_match_name

logger = logging.getLogger(__name__)

DOMAINS_PATH = "domains/domain"


# --- Rules ---

def inspect_rule_actions(
    document: ConfigDocument,
    rule_node: Element,
    inspector: ActionInspector,
) -> List[ActionRecord]:
    rule_name = rule_node.get("name", "")
    actions: List[ActionRecord] = []

    # Source order is kept; reports are reviewed side by side.
    for reference in select(rule_node, "Actions"):
        action_name = text_content(reference)
        if not action_name:
            continue
        actions.extend(inspector.inspect(document, action_name, rule_name))

    return actions


def inspect_rule(
    document: ConfigDocument,
    kind: GatewayKind,
    policy_map: Element,
    rule_name: str,
    inspector: ActionInspector,
) -> RuleInfo:
    condition = {}
    match_name = policy_rule_match_name(policy_map)
    if match_name:
        condition[match_name] = inspect_policy_rule_match(document, match_name)

    rule_node = document.find_named(kind.rule_tag, rule_name)
    if rule_node is None:
        logger.warning("%s %s is not defined, skipping its actions", kind.rule_tag, rule_name)
        return RuleInfo(direction=None, condition=condition, actions=[])

    return RuleInfo(
        direction=elem_text(rule_node, "Direction"),
        condition=condition,
        actions=inspect_rule_actions(document, rule_node, inspector),
    )


def inspect_policy_rules(
    document: ConfigDocument,
    kind: GatewayKind,
    policy_node: Element,
    inspector: ActionInspector,
) -> Dict[str, Any]:
    rules: Dict[str, Any] = {}

    for policy_map in select(policy_node, "PolicyMaps"):
        rule_name = elem_text(policy_map, "Rule")
        if not rule_name:
            logger.warning(
                "%s %s has a policy map without a rule, skipping it",
                kind.policy_tag,
                policy_node.get("name"),
            )
            continue

        rule_info = inspect_rule(document, kind, policy_map, rule_name, inspector)
        # Rules that resolve to no actions are not reported.
        if not rule_info.actions:
            continue
        rules[rule_name] = asdict(rule_info)

    return rules


# --- Policies & gateways ---

def inspect_gateway_policy(
    document: ConfigDocument,
    kind: GatewayKind,
    gateway: Element,
    inspector: ActionInspector,
) -> Dict[str, Any]:
    references = select(gateway, "StylePolicy")
    if not references:
        return {}

    policy_name = text_content(references[0])
    policy_node = document.find_named(kind.policy_tag, policy_name)
    if policy_node is None:
        logger.warning("%s %s is not defined", kind.policy_tag, policy_name)
        return {policy_name: {"rules": {}}}

    return {
        policy_name: {
            "rules": inspect_policy_rules(document, kind, policy_node, inspector),
        }
    }


def inspect_gateway(
    document: ConfigDocument,
    kind: GatewayKind,
    gateway: Element,
    inspector: ActionInspector,
) -> Dict[str, Any]:
    return {
        "type": elem_text(gateway, "Type"),
        kind.policy_key: inspect_gateway_policy(document, kind, gateway, inspector),
    }


# --- Domains ---

def inspect_domain(
    document: ConfigDocument,
    inspector: Optional[ActionInspector] = None,
) -> Dict[str, Any]:
    inspector = inspector or ActionInspector()
    domain_info: Dict[str, Any] = {kind.key: {} for kind in GATEWAY_KINDS}

    for kind in GATEWAY_KINDS:
        for gateway in document.configuration(kind.gateway_tag):
            gateway_name = gateway.get("name", "")
            domain_info[kind.key][gateway_name] = inspect_gateway(document, kind, gateway, inspector)

    return domain_info


def inspect_domain_archive(
    data: bytes,
    source: str,
    inspector: Optional[ActionInspector] = None,
) -> Dict[str, Any]:
    files = read_archive(data)
    document = parse_export(files, source)
    return inspect_domain(document, inspector)


def domain_names(top_export: ConfigDocument) -> List[str]:
    return [domain.get("name", "") for domain in top_export.select(DOMAINS_PATH)]


def _inspect_domain_member(
    backup_file: Path,
    domain_name: str,
    files: Dict[str, bytes],
    inspector: ActionInspector,
) -> Optional[Dict[str, Any]]:
    domain_zip = f"{domain_name}.zip"
    data = files.get(domain_zip)
    if data is None:
        logger.warning("Could not find %s inside %s, skipping this domain.", domain_zip, backup_file)
        return None

    try:
        return inspect_domain_archive(data, f"{backup_file}:{domain_zip}", inspector)
    except Exception:
        # One broken domain must not hide the others.
        logger.exception("Failed to inspect domain %s, skipping this domain.", domain_name)
        return None


def inspect_backup(
    backup_file: Path,
    *,
    workers: int = WORKERS,
    inspector: Optional[ActionInspector] = None,
) -> Dict[str, Any]:
    """
    Inspect a whole backup archive and return its BackupInfo.

    Raises ProcessError when the archive or its top-level export.xml is
    unusable; everything below that is skipped with a log entry instead.
    """
    backup_file = Path(backup_file)
    files = load_backup(backup_file)
    top_export = parse_export(files, str(backup_file))
    inspector = inspector or ActionInspector()

    names = domain_names(top_export)

    def run(domain_name: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        return domain_name, _inspect_domain_member(backup_file, domain_name, files, inspector)

    if workers > 1 and len(names) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(run, names))
    else:
        results = [run(name) for name in names]

    backup_info: Dict[str, Any] = {"domains": {}}
    for domain_name, domain_info in results:
        if domain_info is None:
            continue
        backup_info["domains"][domain_name] = domain_info

    return backup_info
