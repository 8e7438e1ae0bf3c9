"""
Intent Classification

Maps a free-text utterance onto one of the closed ``SecretaryIntent`` values
using an ordered list of keyword rules. Rules are checked top to bottom and
the first match wins, so the order of ``INTENT_RULES`` is part of the
behavior: "top issues" phrasing must be tested before the broader
report-an-issue keywords, and task phrasing before both.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import structlog

from secretary_core.conversation.base import SecretaryIntent

logger = structlog.get_logger()


Predicate = Callable[[str], bool]


def _any(*keywords: str) -> Predicate:
    return lambda text: any(k in text for k in keywords)


def _all(*predicates: Predicate) -> Predicate:
    return lambda text: all(p(text) for p in predicates)


def _either(*predicates: Predicate) -> Predicate:
    return lambda text: any(p(text) for p in predicates)


def _without(keyword: str) -> Predicate:
    return lambda text: keyword not in text


@dataclass(frozen=True)
class IntentRule:
    """A single keyword rule; ``matches`` receives lowercased, trimmed text."""

    intent: SecretaryIntent
    matches: Predicate
    description: str = ""


INTENT_RULES: Tuple[IntentRule, ...] = (
    # Task phrasing always names a task, so it is checked first
    IntentRule(
        SecretaryIntent.CREATE_TASK,
        _all(_any("create", "add", "new", "make"), _any("task")),
        "create/add/new/make + task",
    ),
    IntentRule(
        SecretaryIntent.FIND_TASKS,
        _all(_any("show", "list", "find", "view", "see"), _any("task")),
        "show/list/find/view/see + task",
    ),
    IntentRule(
        SecretaryIntent.UPDATE_TASK,
        _all(_any("update", "mark", "complete", "done", "change", "close"), _any("task")),
        "update/mark/complete/done/change/close + task",
    ),
    IntentRule(
        SecretaryIntent.TOP_ISSUES,
        _all(_any("top", "common", "most"), _any("issue", "problem", "complaint")),
        "top/common/most + issue/problem/complaint",
    ),
    IntentRule(
        SecretaryIntent.TOP_ISSUES,
        _all(_any("what"), _any("issue", "problem"), _any("in", "for")),
        "what + issue/problem + in/for",
    ),
    IntentRule(
        SecretaryIntent.REPORT_ISSUE,
        _either(
            _any("report", "complaint", "complain", "broken", "fix", "problem"),
            _all(_any("issue"), _without("top")),
        ),
        "report/complaint/broken/fix/problem/issue",
    ),
    IntentRule(
        SecretaryIntent.FIND_INSTANCE,
        _either(
            _any("find", "search", "discover", "explore"),
            _all(_any("what"), _any("happening")),
        ),
        "find/search/discover/explore or what's happening",
    ),
    IntentRule(
        SecretaryIntent.CREATE_INSTANCE,
        _either(
            _any("create"),
            _all(_any("new"), _any("instance")),
            _all(_any("start"), _any("whisper")),
            _all(_any("propose"), _any("instance")),
        ),
        "create, new/propose instance, start whisper",
    ),
    IntentRule(
        SecretaryIntent.ASK_CATEGORY,
        _either(_any("categor"), _all(_any("type"), _any("issue"))),
        "category or type of issue",
    ),
)


def classify_intent(
    text: str,
    rules: Tuple[IntentRule, ...] = INTENT_RULES,
) -> Optional[SecretaryIntent]:
    """Return the intent of the first matching rule, or None."""
    normalized = text.lower().strip()
    if not normalized:
        return None

    for rule in rules:
        if rule.matches(normalized):
            logger.debug("intent_classified", intent=rule.intent.value, rule=rule.description)
            return rule.intent

    return None


__all__ = [
    "IntentRule",
    "INTENT_RULES",
    "classify_intent",
]
