"""Rule classification.

Pure business logic: receives a ``blaze_query.Rule`` message and decides
whether the target is runnable and whether it is a test. No I/O, never fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bzlq.models.target import TargetDetail


@dataclass(frozen=True)
class Classification:
    is_executable: bool
    is_test: bool


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")


def rule_label(rule: Any) -> str:
    """The rule's label. Bytes that are not UTF-8 become U+FFFD."""
    return _text(rule.name)


def rule_kind(rule: Any) -> str:
    return _text(rule.rule_class)


def is_test_rule(rule_class: str) -> bool:
    return rule_class.endswith("_test")


def _links_shared(rule: Any) -> bool:
    return any(attr.name == b"linkshared" and attr.boolean_value for attr in rule.attribute)


def is_executable_rule(rule: Any) -> bool:
    """Return True for ``*_binary`` and ``*_test`` rules.

    ``cc_binary(linkshared = True)`` builds a shared library and is not runnable.
    """
    rule_class = rule_kind(rule)
    if not (rule_class.endswith("_binary") or is_test_rule(rule_class)):
        return False
    if rule_class == "cc_binary" and _links_shared(rule):
        return False
    return True


def classify(rule: Any) -> Classification:
    return Classification(
        is_executable=is_executable_rule(rule),
        is_test=is_test_rule(rule_kind(rule)),
    )


def create_target_detail(rule: Any) -> TargetDetail:
    """Build a TargetDetail from a rule message."""
    classification = classify(rule)
    return TargetDetail(
        label=rule_label(rule),
        description=rule_kind(rule),
        is_executable=classification.is_executable,
        is_test=classification.is_test,
    )
