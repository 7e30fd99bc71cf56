from __future__ import annotations

import re
from typing import Mapping, Optional

# Duplicate action names get an auto-generated "_<n>" suffix.
_UNIQUE_SUFFIX = re.compile(r"_\d+$")


def type_alias(action_name: str, rule_name: str) -> str:
    """
    Derive the type alias from an action name.

    "<rule>_<kind>_<n>" -> "<kind>"
    """
    alias = action_name
    prefix = f"{rule_name}_"
    if rule_name and alias.startswith(prefix):
        alias = alias[len(prefix):]
    return _UNIQUE_SUFFIX.sub("", alias)


def lookup_key(type_name: str) -> str:
    """Registry keys use underscores; canonical types keep their hyphens."""
    return type_name.replace("-", "_")


def resolve_type(
    action_name: str,
    rule_name: str,
    subtype_hint: Optional[str],
    registry: Mapping[str, object],
) -> Optional[str]:
    """
    Two-stage type resolution.

    1. The alias derived from the action name.
    2. The node's own Type hint (lower-cased), when it differs from the alias.

    Returns the string that produced a registry hit, or None.
    """
    alias = type_alias(action_name, rule_name)
    if lookup_key(alias) in registry:
        return alias

    hint = (subtype_hint or "").lower()
    if hint and hint != alias and lookup_key(hint) in registry:
        return hint

    return None
