from __future__ import annotations

import logging
from types import SimpleNamespace

from gateway_inspector.actions.executor import ActionInspector, to_record


def test_stylesheet_params_are_attached_in_order(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action(
            "r1_xform_0",
            Transform="local:///t.xsl",
            extra=cfg.stylesheet_params(("mode", "strict"), ("version", "2")),
        )
    )

    records = ActionInspector().inspect(doc, "r1_xform_0", "r1")

    assert records[0]["xform"]["params"] == [
        {"name": "mode", "value": "strict"},
        {"name": "version", "value": "2"},
    ]


def test_params_key_absent_without_stylesheet_params(cfg: SimpleNamespace) -> None:
    doc = cfg.document(cfg.action("r1_xform_0", Transform="local:///t.xsl"))

    records = ActionInspector().inspect(doc, "r1_xform_0", "r1")

    assert "params" not in records[0]["xform"]


def test_ssl_profile_prefers_ssl_cred(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action(
            "r1_fetch_0",
            Destination="https://backend",
            SSLClientConfigType="proxy",
            SSLCred="legacy-profile",
            SSLClientCred="client-profile",
        )
    )

    info = ActionInspector().inspect(doc, "r1_fetch_0", "r1")[0]["fetch"]

    assert info["ssl_proxy_profile"] == "legacy-profile"


def test_ssl_profile_falls_back_to_client_cred(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action(
            "r1_fetch_0",
            Destination="https://backend",
            SSLClientConfigType="client",
            SSLClientCred="client-profile",
        )
    )

    info = ActionInspector().inspect(doc, "r1_fetch_0", "r1")[0]["fetch"]

    assert info["ssl_client_profile"] == "client-profile"


def test_ssl_profile_requires_client_type(cfg: SimpleNamespace) -> None:
    doc = cfg.document(cfg.action("r1_fetch_0", SSLClientCred="client-profile"))

    info = ActionInspector().inspect(doc, "r1_fetch_0", "r1")[0]["fetch"]

    assert not any(key.startswith("ssl_") for key in info)


def test_unknown_type_yields_nothing_and_warns_once(cfg: SimpleNamespace, caplog) -> None:
    doc = cfg.document(cfg.action("r1_teleport_0", Type="teleport"))

    with caplog.at_level(logging.WARNING):
        records = ActionInspector().inspect(doc, "r1_teleport_0", "r1")

    assert records == []
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "teleport" in warnings[0].getMessage()


def test_subtype_hint_labels_the_record(cfg: SimpleNamespace) -> None:
    doc = cfg.document(cfg.action("check-request", Type="setvar", Variable="var://x", Value="1"))

    records = ActionInspector().inspect(doc, "check-request", "r1")

    assert records == [{"setvar": {"name": "check-request", "var": "var://x", "val": "1"}}]


def test_undefined_action_reference_is_skipped(cfg: SimpleNamespace, caplog) -> None:
    doc = cfg.document()

    with caplog.at_level(logging.WARNING):
        records = ActionInspector().inspect(doc, "r1_setvar_0", "r1")

    assert records == []
    assert "r1_setvar_0" in caplog.text


def test_conditional_keeps_branch_order_and_skips_empty_branches(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action(
            "r1_conditional_0",
            Type="conditional",
            extra=cfg.conditions("r1_setvar_0", "r1_results_0", "r1_log_0"),
        ),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
        cfg.action("r1_results_0", Type="results"),
        cfg.action("r1_log_0", LogLevel="debug"),
    )

    records = ActionInspector().inspect(doc, "r1_conditional_0", "r1")

    assert records == [
        {"setvar": {"name": "r1_setvar_0", "var": "var://a", "val": "a"}},
        {"log": {"name": "r1_log_0", "log_level": "debug"}},
    ]


def test_conditional_branch_with_no_records_contributes_nothing(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_setvar_0", "r1_results_0")),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
        cfg.action("r1_results_0"),
    )

    records = ActionInspector().inspect(doc, "r1_conditional_0", "r1")

    assert records == [{"setvar": {"name": "r1_setvar_0", "var": "var://a", "val": "a"}}]


def test_nested_conditionals_are_flattened(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_conditional_1")),
        cfg.action("r1_conditional_1", extra=cfg.conditions("r1_call_0")),
        cfg.action("r1_call_0", Rule="error-rule"),
    )

    records = ActionInspector().inspect(doc, "r1_conditional_0", "r1")

    assert records == [{"call": {"name": "r1_call_0", "rule": "error-rule"}}]


def test_cyclic_conditional_is_truncated_with_warning(cfg: SimpleNamespace, caplog) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_setvar_0", "r1_conditional_1")),
        cfg.action("r1_conditional_1", extra=cfg.conditions("r1_conditional_0")),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
    )

    with caplog.at_level(logging.WARNING):
        records = ActionInspector().inspect(doc, "r1_conditional_0", "r1")

    assert records == [{"setvar": {"name": "r1_setvar_0", "var": "var://a", "val": "a"}}]
    assert "Cyclic conditional action r1_conditional_0" in caplog.text


def test_conditional_nesting_is_bounded(cfg: SimpleNamespace, caplog) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_conditional_1")),
        cfg.action("r1_conditional_1", extra=cfg.conditions("r1_setvar_0")),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
    )

    with caplog.at_level(logging.WARNING):
        records = ActionInspector(max_depth=1).inspect(doc, "r1_conditional_0", "r1")

    assert records == []
    assert "deeper than 1 at action r1_conditional_1" in caplog.text


def test_single_conditional_expands_at_depth_one(cfg: SimpleNamespace, caplog) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_setvar_0")),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
    )

    with caplog.at_level(logging.WARNING):
        records = ActionInspector(max_depth=1).inspect(doc, "r1_conditional_0", "r1")

    assert records == [{"setvar": {"name": "r1_setvar_0", "var": "var://a", "val": "a"}}]
    assert "deeper than" not in caplog.text


def test_nesting_up_to_max_depth_is_expanded(cfg: SimpleNamespace) -> None:
    doc = cfg.document(
        cfg.action("r1_conditional_0", extra=cfg.conditions("r1_conditional_1")),
        cfg.action("r1_conditional_1", extra=cfg.conditions("r1_setvar_0")),
        cfg.action("r1_setvar_0", Variable="var://a", Value="a"),
    )

    records = ActionInspector(max_depth=2).inspect(doc, "r1_conditional_0", "r1")

    assert records == [{"setvar": {"name": "r1_setvar_0", "var": "var://a", "val": "a"}}]


def test_to_record_passes_untyped_bags_through() -> None:
    assert to_record({"name": "a", "type": "log"}) == {"log": {"name": "a"}}
    assert to_record({"name": "a"}) == {"name": "a"}
