from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple
from xml.etree.ElementTree import Element

from gateway_inspector.actions.types import lookup_key
from gateway_inspector.models import ActionRecord, FieldBag
from gateway_inspector.parsing.document import ConfigDocument, elem_attr, elem_text, select

if TYPE_CHECKING:
    from gateway_inspector.actions.executor import ActionInspector

logger = logging.getLogger(__name__)

# (child element, output field)
FieldSpec = Tuple[str, str]

TRANSFORM_LANG_SENTINELS = ("none", "default")


@dataclass(frozen=True)
class ExtractionContext:
    document: ConfigDocument
    rule_name: str
    inspector: "ActionInspector"
    # Action names currently being expanded, outermost first.
    chain: Tuple[str, ...] = ()


# --- Field helpers ---

def add_child(action: FieldBag, node: Element, path: str, name: str) -> None:
    """Copy a child's text into action[name] when it is present and non-empty."""
    value = elem_text(node, path)
    if value:
        action[name] = value


def add_children(action: FieldBag, node: Element, fields: Sequence[FieldSpec]) -> None:
    for path, name in fields:
        add_child(action, node, path, name)


def add_transform_fields(action: FieldBag, node: Element) -> None:
    add_child(action, node, "Transform", "xslt")

    transform_lang = elem_text(node, "TransformLanguage")
    if transform_lang and transform_lang not in TRANSFORM_LANG_SENTINELS:
        action["transform_lang"] = transform_lang


# --- Extractors ---

class ActionExtractor(ABC):
    @abstractmethod
    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        """Return zero or more field bags (or finished records) for one action node."""
        ...


class ChildFieldsExtractor(ActionExtractor):
    """Kinds that are a flat list of child-text fields."""

    def __init__(self, *fields: FieldSpec) -> None:
        self.fields = fields

    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        result = dict(action)
        add_children(result, node, self.fields)
        return [result]


class TransformExtractor(ActionExtractor):
    """Transform family: stylesheet + language, then kind-specific extras."""

    def __init__(self, *extra: FieldSpec, dynamic_stylesheet: bool = False) -> None:
        self.extra = extra
        self.dynamic_stylesheet = dynamic_stylesheet

    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        result = dict(action)
        add_transform_fields(result, node)
        add_children(result, node, self.extra)

        if self.dynamic_stylesheet:
            dynamic_xslt = elem_text(node, "DynamicStylesheet")
            if dynamic_xslt:
                # Object class of the stylesheet reference; not reported.
                elem_attr(node, "DynamicStylesheet", "class")
                result["dynamic_xslt"] = dynamic_xslt

        return [result]


class XformNgExtractor(ActionExtractor):
    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        result = dict(action)
        add_child(result, node, "InputLanguage", "input_lang")
        add_child(result, node, "InputDescriptor", "input_descriptor")

        output_lang = elem_text(node, "OutputLanguage")
        if output_lang and output_lang != "default":
            result["output_lang"] = output_lang

        if elem_text(node, "TransformLanguage") == "xquery":
            add_child(result, node, "Transform", "xquery")

        add_child(result, node, "Policy", "url_rewrite_policy")
        return [result]


class ValidateExtractor(ActionExtractor):
    # Priority order; the first schema source present wins.
    SCHEMA_SOURCES: Tuple[FieldSpec, ...] = (
        ("SchemaURL", "xsd"),
        ("WsdlURL", "wsdl"),
        ("JSONSchemaURL", "json"),
        ("Policy", "url_rewrite_policy"),
        ("DynamicSchema", "dynamic_xsd"),
    )

    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        result = dict(action)

        for path, name in self.SCHEMA_SOURCES:
            value = elem_text(node, path)
            if not value:
                continue
            if path == "DynamicSchema":
                elem_attr(node, path, "class")
            result[name] = value
            return [result]

        result["with_schema_attribute"] = True
        return [result]


class NoOpExtractor(ActionExtractor):
    """Kinds that never appear in the output."""

    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[FieldBag]:
        return []


class ConditionalExtractor(ActionExtractor):
    """Expand each Condition/ConditionAction into the records of the action it names."""

    def extract(self, action: FieldBag, node: Element, ctx: ExtractionContext) -> List[ActionRecord]:
        # ctx.chain holds the enclosing conditionals; this one sits one level below them.
        if len(ctx.chain) >= ctx.inspector.max_depth:
            logger.warning(
                "Conditional nesting deeper than %d at action %s, skipping this branch",
                ctx.inspector.max_depth,
                action["name"],
            )
            return []

        chain = ctx.chain + (action["name"],)

        sub_actions: List[ActionRecord] = []
        for condition in select(node, "Condition"):
            target = elem_text(condition, "ConditionAction")
            if not target:
                continue
            records = ctx.inspector.inspect(ctx.document, target, ctx.rule_name, chain=chain)
            if not records:
                continue
            sub_actions.extend(records)

        return sub_actions


# --- Registry ---

SCRIPT = ("GatewayScriptLocation", "script")
SERIALIZATION = ("JOSESerializationType", "serialization")
URL_REWRITE_POLICY = ("Policy", "url_rewrite_policy")


def default_extractors() -> Dict[str, ActionExtractor]:
    """Canonical type -> extractor."""
    return {
        "xform": TransformExtractor(URL_REWRITE_POLICY),
        "xformbin": TransformExtractor(
            ("TxMap", "itx_map_file"),
            ("TxMode", "itx_map_mode"),
            ("TxTopLevelMap", "itx_top_level_map"),
            ("TxAuditLog", "itx_audit_log"),
            URL_REWRITE_POLICY,
        ),
        "xformng": XformNgExtractor(),
        "xformpi": TransformExtractor(URL_REWRITE_POLICY),
        "filter": TransformExtractor(),
        "antivirus": TransformExtractor(),
        "sign": TransformExtractor(),
        "verify": TransformExtractor(),
        "encrypt": TransformExtractor(dynamic_stylesheet=True),
        "decrypt": TransformExtractor(dynamic_stylesheet=True),
        "route-action": TransformExtractor(dynamic_stylesheet=True),
        "route-set": TransformExtractor(("Destination", "destination")),
        "validate": ValidateExtractor(),
        "setvar": ChildFieldsExtractor(("Variable", "var"), ("Value", "val")),
        "aaa": ChildFieldsExtractor(("AAA", "policy")),
        "jose-sign": ChildFieldsExtractor(
            SCRIPT,
            SERIALIZATION,
            ("JWSSignatureObject", "signature"),
        ),
        "jose-verify": ChildFieldsExtractor(
            SCRIPT,
            ("SignatureIdentifier", "signature_identifier"),
            ("SingleCertificate", "single_certificate"),
            ("SingleSSKey", "single_sskey"),
            ("JWSVerifyStripSignature", "strip_signature"),
        ),
        "jose-encrypt": ChildFieldsExtractor(
            SCRIPT,
            SERIALIZATION,
            ("JWEEncAlgorithm", "algorithm"),
            ("JWEHeaderObject", "jwe_header"),
        ),
        "jose-decrypt": ChildFieldsExtractor(
            SCRIPT,
            ("SingleSSKey", "sskey"),
            ("SingleKey", "single_key"),
            ("RecipientIdentifier", "recipient_identifier"),
            ("JWEDirectKeyObject", "direct_key"),
        ),
        "log": ChildFieldsExtractor(
            ("LogType", "log_type"),
            ("LogLevel", "log_level"),
            ("Destination", "destination"),
            ("MethodType", "method"),
        ),
        "on-error": ChildFieldsExtractor(("ErrorMode", "error_mode"), ("Rule", "rule")),
        "extract": ChildFieldsExtractor(("XPath", "xpath"), ("Variable", "var")),
        "fetch": ChildFieldsExtractor(("Destination", "source"), ("MethodRewriteType", "method")),
        "slm": ChildFieldsExtractor(("SLMPolicy", "slm")),
        "call": ChildFieldsExtractor(("Rule", "rule")),
        "method-rewrite": ChildFieldsExtractor(("MethodRewriteType", "method")),
        "convert-http": ChildFieldsExtractor(("InputConversion", "input-conversion")),
        "gatewayscript": ChildFieldsExtractor(
            ("GatewayScriptLocation", "gatewayscript"),
            ("ActionDebug", "debug"),
        ),
        "results": NoOpExtractor(),
        "results_output": NoOpExtractor(),
        "conditional": ConditionalExtractor(),
    }


def default_registry() -> Dict[str, ActionExtractor]:
    """Lookup key -> extractor, as consulted by resolve_type()."""
    return {lookup_key(name): extractor for name, extractor in default_extractors().items()}
