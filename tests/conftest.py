from __future__ import annotations

import io
import zipfile
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Iterable, Optional, Sequence, Tuple
from xml.sax.saxutils import escape, quoteattr

import pytest

from gateway_inspector.parsing.document import ConfigDocument


def children_xml(children: Dict[str, str]) -> str:
    return "".join(f"<{tag}>{escape(value)}</{tag}>" for tag, value in children.items())


def action(name: str, *, extra: str = "", **children: str) -> str:
    return f"<StylePolicyAction name={quoteattr(name)}>{children_xml(children)}{extra}</StylePolicyAction>"


def stylesheet_params(*pairs: Tuple[str, str]) -> str:
    return "".join(
        f"<StylesheetParameters><ParameterName>{escape(n)}</ParameterName>"
        f"<ParameterValue>{escape(v)}</ParameterValue></StylesheetParameters>"
        for n, v in pairs
    )


def conditions(*targets: str) -> str:
    return "".join(
        f"<Condition><Expression>true()</Expression><ConditionAction>{escape(t)}</ConditionAction></Condition>"
        for t in targets
    )


def rule(name: str, actions: Sequence[str], *, direction: str = "request-rule", tag: str = "StylePolicyRule") -> str:
    refs = "".join(f"<Actions>{escape(a)}</Actions>" for a in actions)
    return f"<{tag} name={quoteattr(name)}><Direction>{direction}</Direction>{refs}</{tag}>"


def matching(name: str, *match_rules: Dict[str, str], combine_with_or: str = "off") -> str:
    body = "".join(f"<MatchRules>{children_xml(r)}</MatchRules>" for r in match_rules)
    return (
        f"<Matching name={quoteattr(name)}>{body}"
        f"<CombineWithOr>{combine_with_or}</CombineWithOr></Matching>"
    )


def policy(name: str, maps: Iterable[Tuple[str, str]], *, tag: str = "StylePolicy") -> str:
    body = "".join(f"<PolicyMaps><Match>{m}</Match><Rule>{r}</Rule></PolicyMaps>" for m, r in maps)
    return f"<{tag} name={quoteattr(name)}>{body}</{tag}>"


def gateway(
    name: str,
    policy_name: Optional[str],
    *,
    type_: str = "static-backend",
    tag: str = "MultiProtocolGateway",
) -> str:
    ref = f"<StylePolicy>{policy_name}</StylePolicy>" if policy_name else ""
    return f"<{tag} name={quoteattr(name)}><Type>{type_}</Type>{ref}</{tag}>"


def config_xml(*objects: str) -> bytes:
    return (
        "<datapower-configuration version='3'><configuration>"
        + "".join(objects)
        + "</configuration></datapower-configuration>"
    ).encode("utf-8")


def document(*objects: str) -> ConfigDocument:
    return ConfigDocument.from_bytes(config_xml(*objects))


def zip_bytes(members: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for path, data in members.items():
            archive.writestr(path, data)
    return buf.getvalue()


def domain_zip(*objects: str) -> bytes:
    return zip_bytes({"export.xml": config_xml(*objects)})


def backup_zip(path: Path, domains: Dict[str, Optional[bytes]]) -> Path:
    """domains maps name -> domain zip bytes; None lists the domain without a member."""
    listed = "".join(f"<domain name={quoteattr(n)}/>" for n in domains)
    top = f"<datapower-configuration version='3'><domains>{listed}</domains></datapower-configuration>"

    members = {"export.xml": top.encode("utf-8")}
    for name, data in domains.items():
        if data is not None:
            members[f"{name}.zip"] = data

    path.write_bytes(zip_bytes(members))
    return path


@pytest.fixture
def cfg() -> SimpleNamespace:
    """Builders for export documents and backup archives."""
    return SimpleNamespace(
        action=action,
        stylesheet_params=stylesheet_params,
        conditions=conditions,
        rule=rule,
        matching=matching,
        policy=policy,
        gateway=gateway,
        config_xml=config_xml,
        document=document,
        zip_bytes=zip_bytes,
        domain_zip=domain_zip,
        backup_zip=backup_zip,
    )


@pytest.fixture
def simple_domain(cfg: SimpleNamespace) -> bytes:
    """One MPG whose single rule sets a variable and logs."""
    return cfg.domain_zip(
        cfg.gateway("mpg-orders", "orders-policy"),
        cfg.policy("orders-policy", [("match-all", "orders-rule")]),
        cfg.matching("match-all", {"Type": "url", "Url": "*"}),
        cfg.rule("orders-rule", ["orders-rule_setvar_0", "orders-rule_log_0"]),
        cfg.action("orders-rule_setvar_0", Type="setvar", Variable="var://context/x", Value="1"),
        cfg.action("orders-rule_log_0", Type="log", LogLevel="info", Destination="http://log"),
    )
