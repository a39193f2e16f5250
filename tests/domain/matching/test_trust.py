from __future__ import annotations

from streetmatch.domain.matching.trust import (
    DEFAULT_EVIDENCE_ORDER,
    TEXT_FIRST_ORDER,
    Evidence,
    SourceTrustPolicy,
)


def test_default_policy_prefers_coordinates() -> None:
    policy = SourceTrustPolicy()

    assert policy.evidence_order(None) == DEFAULT_EVIDENCE_ORDER
    assert policy.evidence_order("rieltor") == DEFAULT_EVIDENCE_ORDER
    assert not policy.trusts_text_over_coordinates("rieltor")


def test_text_first_sources_are_explicit() -> None:
    policy = SourceTrustPolicy.text_first(["dom_ria"])

    assert policy.evidence_order("dom_ria") == TEXT_FIRST_ORDER
    assert policy.trusts_text_over_coordinates("dom_ria")
    assert not policy.trusts_text_over_coordinates("olx")
    assert not policy.trusts_text_over_coordinates(None)


def test_partial_orders() -> None:
    policy = SourceTrustPolicy(
        overrides={"text_only": (Evidence.TEXT,), "coords_only": (Evidence.COORDINATES,)}
    )

    assert policy.trusts_text_over_coordinates("text_only")
    assert not policy.trusts_text_over_coordinates("coords_only")
