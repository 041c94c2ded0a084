"""Rule-based intent parsing.

Turns a free-text automation request into an ``Intent``: which actions were
asked for, where the data comes from, where results go and how often. No
model calls are involved and the parser never raises; bad input produces the
zero-value ``Intent``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from .constants import (
    FALLBACK_ACTION,
    FALLBACK_ACTION_CONFIDENCE,
    FALLBACK_MIN_PROMPT_LENGTH,
    INTENT_CONFIDENCE_THRESHOLD,
)
from .context import AgentContext
from .schemas import Intent, IntentAction


@dataclass(frozen=True)
class ActionFamily:
    keywords: tuple[str, ...]
    base_confidence: float


ACTION_FAMILIES: dict[str, ActionFamily] = {
    "fetch": ActionFamily(
        ("fetch", "get", "retrieve", "collect", "pull", "obtain", "grab", "connect", "read", "load"), 0.9
    ),
    "scrape": ActionFamily(
        ("scrape", "crawl", "extract", "mine", "harvest", "webscraper", "web scraper", "scraper", "scraping"), 0.9
    ),
    "summarize": ActionFamily(
        ("summarize", "summary", "shorten", "condense", "digest", "brief", "tldr", "summarization"), 0.9
    ),
    "analyze": ActionFamily(("analyze", "analysis", "examine", "study", "evaluate", "sentiment", "understand"), 0.85),
    "transform": ActionFamily(("transform", "convert", "process", "format", "change", "modify", "information"), 0.85),
    "generate": ActionFamily(("generate", "create", "write", "compose", "produce", "make", "build"), 0.85),
    "send": ActionFamily(("send", "deliver", "transmit", "forward", "dispatch", "share"), 0.9),
    "notify": ActionFamily(("notify", "alert", "inform", "warn", "remind", "notification"), 0.85),
    "post": ActionFamily(("post", "publish", "share", "broadcast", "upload"), 0.9),
    "email": ActionFamily(("email", "mail", "inbox", "gmail"), 0.95),
    "slack": ActionFamily(("slack", "channel", "workspace"), 0.95),
    "twitter": ActionFamily(("twitter", "tweet", "x.com"), 0.95),
    "instagram": ActionFamily(("instagram", "insta", "ig"), 0.95),
    "sms": ActionFamily(("sms", "text message", "mobile"), 0.95),
    "upload": ActionFamily(("upload", "store", "save", "backup"), 0.85),
    "filter": ActionFamily(("filter", "select", "pick", "choose", "exclude"), 0.8),
    "merge": ActionFamily(("merge", "combine", "join", "concatenate", "union"), 0.85),
    "loop": ActionFamily(("loop", "repeat", "iterate", "each", "every", "for each"), 0.85),
    "delay": ActionFamily(("delay", "wait", "pause", "sleep"), 0.9),
    "condition": ActionFamily(("if", "when", "condition", "check", "unless", "only if"), 0.85),
}

SOURCE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "api": ("api", "endpoint", "rest", "graphql", "service"),
    "web": ("website", "webpage", "site", "url", "link", "page"),
    "blog": ("blog", "post", "article", "content"),
    "rss": ("rss", "feed", "news"),
    "database": ("database", "db", "table", "records"),
    "file": ("file", "csv", "json", "excel", "spreadsheet"),
    "social": ("social", "facebook", "instagram", "linkedin"),
}

OUTPUT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "email": ("email", "mail", "inbox", "gmail", "outlook"),
    "slack": ("slack", "channel"),
    "sms": ("sms", "text", "phone"),
    "twitter": ("twitter", "tweet", "x post"),
    "instagram": ("instagram", "insta", "ig"),
    "linkedin": ("linkedin", "li post"),
    "sheets": ("sheets", "spreadsheet", "google sheets", "excel"),
    "s3": ("s3", "aws", "bucket", "storage"),
    "webhook": ("webhook", "callback", "endpoint"),
    "file": ("file", "save", "download", "export"),
}

# Order matters: the first matching pattern decides the frequency.
FREQUENCY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(every\s*day|daily|each\s*day)\b", re.IGNORECASE), "daily"),
    (re.compile(r"\b(every\s*hour|hourly)\b", re.IGNORECASE), "hourly"),
    (re.compile(r"\b(every\s*week|weekly)\b", re.IGNORECASE), "weekly"),
    (re.compile(r"\b(every\s*month|monthly)\b", re.IGNORECASE), "monthly"),
    (re.compile(r"\b(every\s*(\d+)\s*minutes?)\b", re.IGNORECASE), "custom"),
    (re.compile(r"\b(real[\s-]?time|instant|immediately)\b", re.IGNORECASE), "realtime"),
    (re.compile(r"\b(once|one\s*time)\b", re.IGNORECASE), "once"),
)

_KEYWORD_PATTERNS: dict[str, re.Pattern[str]] = {}


def round_half_up(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    pattern = _KEYWORD_PATTERNS.get(keyword)
    if pattern is None:
        pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
        _KEYWORD_PATTERNS[keyword] = pattern
    return pattern


def normalize_text(text: str) -> str:
    return text.lower().strip()


def match_keywords(text: str, keywords: tuple[str, ...]) -> tuple[bool, float]:
    """Best local score over the whole-word matches of ``keywords`` in ``text``.

    score = 0.8 + position bonus (earlier is better, up to 0.1)
                + length bonus (longer keyword is more specific, up to 0.1)
    """
    best = 0.0
    matched = False
    for keyword in keywords:
        if not _keyword_pattern(keyword).search(text):
            continue
        matched = True
        index = text.find(keyword.lower())
        position_bonus = max(0.0, 0.1 * (1 - index / len(text)))
        length_bonus = min(0.1, len(keyword) * 0.01)
        best = max(best, 0.8 + position_bonus + length_bonus)
    return matched, (min(1.0, best) if matched else 0.0)


def detect_actions(text: str) -> list[IntentAction]:
    actions: list[IntentAction] = []
    for action_type, family in ACTION_FAMILIES.items():
        matched, score = match_keywords(text, family.keywords)
        if matched:
            actions.append(IntentAction(type=action_type, confidence=round_half_up(family.base_confidence * score)))
    actions.sort(key=lambda action: action.confidence, reverse=True)
    return actions


def _detect_present(text: str, table: dict[str, tuple[str, ...]]) -> list[str]:
    return [name for name, keywords in table.items() if match_keywords(text, keywords)[0]]


def detect_sources(text: str) -> list[str]:
    return _detect_present(text, SOURCE_KEYWORDS)


def detect_outputs(text: str) -> list[str]:
    return _detect_present(text, OUTPUT_KEYWORDS)


def detect_frequency(text: str) -> str | None:
    for pattern, value in FREQUENCY_PATTERNS:
        if pattern.search(text):
            return value
    return None


def overall_confidence(actions: list[IntentAction], sources: list[str], outputs: list[str]) -> float:
    if not actions:
        return 0.0
    average = sum(action.confidence for action in actions) / len(actions)
    if sources and outputs:
        bonus = 0.1
    elif sources or outputs:
        bonus = 0.05
    else:
        bonus = 0.0
    return min(1.0, round_half_up(average + bonus))


def parse_intent(prompt: Any, context: AgentContext | None = None) -> Intent:
    if not isinstance(prompt, str) or not prompt.strip():
        if context is not None:
            context.log_decision("intent", "empty_prompt", "Prompt was empty or invalid")
        return Intent(raw=prompt if isinstance(prompt, str) else "")

    text = normalize_text(prompt)
    actions = detect_actions(text)
    sources = detect_sources(text)
    outputs = detect_outputs(text)
    intent = Intent(
        actions=actions,
        sources=sources,
        outputs=outputs,
        frequency=detect_frequency(prompt),
        confidence=overall_confidence(actions, sources, outputs),
        raw=prompt,
    )

    kept = [action for action in actions if action.confidence >= INTENT_CONFIDENCE_THRESHOLD]
    if context is not None:
        dropped = len(actions) - len(kept)
        if dropped:
            context.log_decision(
                "intent",
                "filter_low_confidence",
                f"Dropped {dropped} action(s) below threshold {INTENT_CONFIDENCE_THRESHOLD}",
            )
        context.log_decision(
            "intent",
            "parse_complete",
            f"Detected {len(kept)} action(s), {len(sources)} source(s), {len(outputs)} output(s)",
        )
    intent.actions = kept

    # Long-enough prompts with nothing recognisable are assumed to be about fetching data.
    if not intent.actions and len(prompt.strip()) > FALLBACK_MIN_PROMPT_LENGTH:
        intent.actions.append(IntentAction(type=FALLBACK_ACTION, confidence=FALLBACK_ACTION_CONFIDENCE))
        if context is not None:
            context.log_decision(
                "intent",
                "fallback_action",
                "No actions detected but prompt is meaningful, added fallback fetch action",
            )

    return intent


def is_actionable_intent(intent: Intent | None) -> bool:
    return intent is not None and len(intent.actions) > 0
