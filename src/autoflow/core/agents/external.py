"""Intake checks for graphs produced outside the rule-based pipeline.

An externally generated graph names its steps by human-readable label. Each
label must resolve to a registry step before the graph is handed to the
validator and executor.
"""

from __future__ import annotations

from autoflow.core.registry.registry import CapabilityRegistry

from .schemas import Graph

LABEL_ALIASES: dict[str, str] = {
    "ai summarizer": "aiSummarizer",
    "ai agent": "aiSummarizer",
    "web scraper": "webScraper",
    "slack message": "slackSender",
    "data fetcher": "dataFetcher",
    "content polisher": "contentPolisher",
    "ai text generator": "aiTextGenerator",
    "sentiment analyzer": "sentimentAnalyzer",
    "email generator": "emailGenerator",
    "email service": "emailGenerator",
    "text processor": "textProcessor",
    "data transformer": "dataTransformer",
    "condition check": "conditionCheck",
    "delay": "delay",
    "schedule": "schedule",
    "loop": "loop",
    "merge": "merge",
    "twitter api": "twitterApi",
    "x api": "twitterApi",
    "s3 upload": "s3Upload",
    "s3": "s3Upload",
    "sms": "smsSender",
    "sms sender": "smsSender",
    "google sheets": "googleSheets",
    "sheets": "googleSheets",
    "calendar": "calendarEvent",
    "calendar event": "calendarEvent",
    "pagerduty": "pagerDuty",
    "pager duty": "pagerDuty",
    "linkedin api": "linkedinApi",
    "instagram api": "instagramApi",
    "rss feed": "rssFeed",
    "rss": "rssFeed",
    "webhook": "webhookTrigger",
    "database": "database",
    "file upload": "fileUpload",
    "file uploader": "fileUpload",
    "output logger": "outputLogger",
}


def resolve_step_label(label: str, registry: CapabilityRegistry | None = None) -> str | None:
    normalized = " ".join(label.casefold().split())
    step_id = LABEL_ALIASES.get(normalized)
    if step_id is not None:
        return step_id
    if registry is not None:
        for step in registry.list_all():
            if step.label.casefold() == normalized or step.id.casefold() == normalized:
                return step.id
    return None


def validate_external_labels(graph: Graph, registry: CapabilityRegistry) -> list[str]:
    """Labels in ``graph`` that do not resolve to a registry step."""
    unknown: list[str] = []
    for node in graph.nodes:
        candidate = node.data.node_id or node.data.label
        step_id = resolve_step_label(candidate, registry) if candidate else None
        if step_id is None or not registry.is_valid(step_id):
            unknown.append(candidate or node.id)
    return unknown


def normalize_external_graph(graph: Graph, registry: CapabilityRegistry) -> Graph:
    """Fill in ``node_id``, ``category`` and a missing ``handler`` from the registry where a label resolves."""
    nodes = []
    for node in graph.nodes:
        step_id = resolve_step_label(node.data.node_id or node.data.label, registry)
        definition = registry.by_id(step_id) if step_id else None
        if definition is None:
            nodes.append(node)
            continue
        data = node.data.model_copy(
            update={
                "node_id": definition.id,
                "handler": node.data.handler or definition.id,
                "category": node.data.category or definition.category,
                "label": node.data.label or definition.label,
            }
        )
        nodes.append(node.model_copy(update={"data": data}))
    return graph.model_copy(update={"nodes": nodes})
