"""Library of pre-authored n8n workflow documents."""

import copy
from collections.abc import Callable
from typing import Any

OPENAI_NODE_TYPE = "@n8n/n8n-nodes-langchain.openAi"
CUSTOM_TEMPLATE = "custom"

# Names accepted by create_workflow. Names without a builder below fall back
# to the custom builder.
TEMPLATE_CHOICES = (
    "content-multiplication-engine",
    "audience-intelligence-system",
    "lead-qualification-pipeline",
    "newsletter-automation-suite",
    "social-media-orchestrator",
    "customer-journey-automation",
    "data-synthesis-pipeline",
    "ai-content-generator",
    "community-engagement-bot",
    "revenue-tracking-system",
    "competitor-monitoring",
    "idea-capture-processor",
    "course-delivery-automation",
    "feedback-analysis-engine",
    "personal-assistant-bot",
    CUSTOM_TEMPLATE,
)

DEFAULT_SETTINGS = {
    "executionOrder": "v1",
    "saveDataSuccessExecution": "all",
    "saveExecutionProgress": True,
    "saveManualExecutions": True,
    "callerPolicy": "workflowsFromSameOwner",
}


def _node(node_id: str, name: str, node_type: str, position: tuple[int, int], **parameters) -> dict:
    return {
        "parameters": parameters,
        "id": node_id,
        "name": name,
        "type": node_type,
        "position": list(position),
    }


def _link(*targets: str | list[str]) -> dict:
    """Build a ``main`` connection entry; each argument is one output slot."""
    outputs = []
    for target in targets:
        names = [target] if isinstance(target, str) else target
        outputs.append([{"node": n, "type": "main", "index": 0} for n in names])
    return {"main": outputs}


def _chain(*names: str) -> dict:
    """Connect nodes one after another on their first output."""
    return {source: _link(target) for source, target in zip(names, names[1:])}


def _settings(config: dict) -> dict:
    settings = dict(DEFAULT_SETTINGS)
    if config.get("errorWorkflowId"):
        settings["errorWorkflow"] = config["errorWorkflowId"]
    return settings


def _prompt(system: str, user: str, temperature: float = 0.7, max_tokens: int = 2000) -> dict:
    return {
        "resource": "text",
        "operation": "message",
        "model": "gpt-4-turbo-preview",
        "messages": {
            "values": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ]
        },
        "options": {"temperature": temperature, "maxTokens": max_tokens},
    }


def _content_multiplication_engine(config: dict) -> dict:
    return {
        "name": config.get("name") or "Content Multiplication Engine V2",
        "nodes": [
            _node(
                "webhook", "Content Input Webhook", "n8n-nodes-base.webhook", (240, 300),
                httpMethod="POST",
                path="content-multiply",
                responseMode="responseNode",
                options={
                    "responseHeaders": {
                        "entries": [{"name": "Content-Type", "value": "application/json"}]
                    }
                },
            ),
            _node(
                "ai-multiplier", "AI Content Transformer", OPENAI_NODE_TYPE, (480, 300),
                **_prompt(
                    "Transform the input into a social thread, a professional post, "
                    "a newsletter section, a short video script and an email campaign.",
                    "Content to multiply: {{ $json.content }}\n\n"
                    "Target audience: {{ $json.audience || 'creators and entrepreneurs' }}",
                    temperature=0.8,
                    max_tokens=4000,
                ),
            ),
            _node(
                "formatter", "Format Output", "n8n-nodes-base.set", (720, 300),
                mode="raw",
                jsonOutput="={{ $json }}",
            ),
            _node(
                "save-check", "Check Save Option", "n8n-nodes-base.if", (960, 300),
                conditions={
                    "boolean": [{"value1": "={{ $json.saveToDatabase || false }}", "value2": True}]
                },
            ),
            _node(
                "database", "Save to Database", "n8n-nodes-base.postgres", (1200, 240),
                operation="insert",
                table="content_multiplications",
                columns="id,original_content,outputs,created_at",
            ),
            _node(
                "response-builder", "Build Response", "n8n-nodes-base.set", (1200, 360),
                values={
                    "string": [
                        {"name": "status", "value": "success"},
                        {"name": "message", "value": "Content multiplied successfully"},
                    ],
                    "number": [{"name": "outputCount", "value": 5}],
                },
                options={"include": "all"},
            ),
            _node(
                "webhook-response", "Send Response", "n8n-nodes-base.respondToWebhook", (1440, 300),
                respondWith="json",
                responseBody="={{ JSON.stringify($json) }}",
            ),
        ],
        "connections": {
            **_chain("Content Input Webhook", "AI Content Transformer", "Format Output", "Check Save Option"),
            "Check Save Option": _link("Save to Database", "Build Response"),
            **_chain("Save to Database", "Build Response", "Send Response"),
        },
        "settings": _settings(config),
    }


def _audience_intelligence_system(config: dict) -> dict:
    return {
        "name": config.get("name") or "Audience Intelligence System",
        "nodes": [
            _node(
                "schedule-trigger", "Intelligence Schedule", "n8n-nodes-base.cron", (240, 300),
                rule={
                    "interval": [
                        {"field": "minutes", "minutesInterval": config.get("checkInterval") or 30}
                    ]
                },
            ),
            _node(
                "twitter-search", "Twitter Monitor", "n8n-nodes-base.twitter", (480, 200),
                resource="tweet",
                operation="search",
                searchQuery=config.get("searchTerms") or "#futureofwork OR 'one person business'",
                limit=50,
            ),
            _node(
                "reddit-monitor", "Reddit Entrepreneur", "n8n-nodes-base.httpRequest", (480, 400),
                url="https://www.reddit.com/r/Entrepreneur/top.json",
                options={"qs": {"limit": 25, "t": "day"}},
            ),
            _node(
                "twitter-tagger", "Tag Twitter Data", "n8n-nodes-base.set", (720, 200),
                values={"string": [{"name": "source", "value": "twitter"}]},
            ),
            _node(
                "reddit-tagger", "Tag Reddit Data", "n8n-nodes-base.set", (720, 400),
                values={"string": [{"name": "source", "value": "reddit"}]},
            ),
            _node(
                "merge-sources", "Merge Intelligence", "n8n-nodes-base.merge", (960, 300),
                mode="combine",
            ),
            _node(
                "ai-analyzer", "AI Intelligence Analysis", OPENAI_NODE_TYPE, (1200, 300),
                **_prompt(
                    "Analyze audience conversations. Report pain points, trending topics "
                    "and content opportunities as JSON.",
                    "Conversations: {{ JSON.stringify($json) }}",
                    temperature=0.3,
                ),
            ),
            _node(
                "slack-notifier", "Notify Slack", "n8n-nodes-base.slack", (1440, 200),
                channelId=config.get("slackChannel") or "C1234567890",
                text="New audience insights are ready",
            ),
            _node(
                "save-insights", "Save Insights", "n8n-nodes-base.postgres", (1440, 400),
                operation="insert",
                table="audience_insights",
            ),
        ],
        "connections": {
            "Intelligence Schedule": _link("Twitter Monitor", "Reddit Entrepreneur"),
            "Twitter Monitor": _link("Tag Twitter Data"),
            "Reddit Entrepreneur": _link("Tag Reddit Data"),
            "Tag Twitter Data": _link("Merge Intelligence"),
            "Tag Reddit Data": {
                "main": [[{"node": "Merge Intelligence", "type": "main", "index": 1}]]
            },
            "Merge Intelligence": _link("AI Intelligence Analysis"),
            "AI Intelligence Analysis": _link("Notify Slack", "Save Insights"),
        },
        "settings": _settings(config),
    }


def _newsletter_automation_suite(config: dict) -> dict:
    return {
        "name": config.get("name") or "Newsletter Automation Suite",
        "nodes": [
            _node(
                "newsletter-schedule", "Newsletter Schedule", "n8n-nodes-base.cron", (240, 300),
                rule={
                    "interval": [
                        {"field": "cronExpression", "cronExpression": config.get("schedule") or "0 6 * * 4"}
                    ]
                },
            ),
            _node(
                "fetch-content", "Fetch Content Ideas", "n8n-nodes-base.postgres", (480, 300),
                operation="executeQuery",
                query="SELECT * FROM content_ideas WHERE used = false ORDER BY score DESC LIMIT 5",
            ),
            _node(
                "ai-writer", "AI Newsletter Writer", OPENAI_NODE_TYPE, (720, 300),
                **_prompt(
                    "Write a weekly newsletter from the supplied ideas with a hook, "
                    "three insights and one actionable takeaway.",
                    "Ideas: {{ JSON.stringify($json) }}",
                    max_tokens=3000,
                ),
            ),
            _node(
                "get-subscribers", "Get ConvertKit Subscribers", "n8n-nodes-base.convertKit", (960, 300),
                resource="form",
                operation="getSubscriptions",
                list=config.get("convertKitListId"),
            ),
            _node(
                "send-newsletter", "Send Newsletter", "n8n-nodes-base.convertKit", (1200, 300),
                resource="sequence",
                operation="addSubscriber",
                sequenceId=config.get("sequenceId"),
            ),
            _node(
                "mark-used", "Mark Content Used", "n8n-nodes-base.postgres", (1440, 300),
                operation="update",
                table="content_ideas",
            ),
        ],
        "connections": _chain(
            "Newsletter Schedule",
            "Fetch Content Ideas",
            "AI Newsletter Writer",
            "Get ConvertKit Subscribers",
            "Send Newsletter",
            "Mark Content Used",
        ),
        "settings": _settings(config),
    }


def _lead_qualification_pipeline(config: dict) -> dict:
    tiers = [("starter", 30), ("growth", 70), ("enterprise", 90)]
    nodes = [
        _node(
            "lead-webhook", "Lead Entry", "n8n-nodes-base.webhook", (240, 300),
            httpMethod="POST",
            path="lead-qualification",
        ),
        _node(
            "qualification-router", "Qualification Logic", "n8n-nodes-base.switch", (480, 300),
            dataType="number",
            value1="={{ $json.budget }}",
            rules={
                "rules": [
                    {"operation": "smaller", "value2": 1000, "output": 0},
                    {"operation": "smaller", "value2": 10000, "output": 1},
                ]
            },
            fallbackOutput=2,
        ),
    ]
    for offset, (tier, score) in enumerate(tiers):
        nodes.append(
            _node(
                f"{tier}-tier", f"{tier.capitalize()} Tier", "n8n-nodes-base.set", (720, 200 + offset * 100),
                values={
                    "string": [
                        {"name": "tier", "value": tier},
                        {"name": "score", "value": str(score)},
                    ]
                },
            )
        )
    nodes.extend([
        _node("tier-merge", "Merge Tiers", "n8n-nodes-base.merge", (960, 300), mode="append"),
        _node(
            "enrich-data", "Enrich with Clearbit", "n8n-nodes-base.httpRequest", (1200, 300),
            url="=https://person.clearbit.com/v2/combined/find?email={{ $json.email }}",
        ),
        _node(
            "create-contact", "Add to HubSpot", "n8n-nodes-base.hubspot", (1440, 300),
            resource="contact",
            operation="upsert",
            email="={{ $json.email }}",
        ),
        _node(
            "send-welcome", "Send Welcome Email", "n8n-nodes-base.hubspot", (1680, 300),
            resource="email",
            operation="send",
            fromEmail=config.get("fromEmail") or "team@example.com",
        ),
    ])
    return {
        "name": config.get("name") or "Lead Qualification Pipeline",
        "nodes": nodes,
        "connections": {
            "Lead Entry": _link("Qualification Logic"),
            "Qualification Logic": _link("Starter Tier", "Growth Tier", "Enterprise Tier"),
            "Starter Tier": _link("Merge Tiers"),
            "Growth Tier": _link("Merge Tiers"),
            "Enterprise Tier": _link("Merge Tiers"),
            **_chain("Merge Tiers", "Enrich with Clearbit", "Add to HubSpot", "Send Welcome Email"),
        },
        "settings": _settings(config),
    }


def _ai_content_generator(config: dict) -> dict:
    return {
        "name": config.get("name") or "AI Content Generation Pipeline",
        "nodes": [
            _node(
                "daily-trigger", "Daily Content Generation", "n8n-nodes-base.cron", (240, 300),
                rule={
                    "interval": [
                        {"field": "cronExpression", "cronExpression": config.get("schedule") or "0 8 * * *"}
                    ]
                },
            ),
            _node(
                "trend-fetcher", "Get Trending Topics", "n8n-nodes-base.httpRequest", (480, 200),
                url="https://trends.google.com/trends/api/dailytrends",
                options={"headers": {"entries": [{"name": "User-Agent", "value": "Mozilla/5.0"}]}},
            ),
            _node(
                "keyword-fetcher", "Get Top Keywords", "n8n-nodes-base.postgres", (480, 400),
                operation="executeQuery",
                query="SELECT keyword FROM keywords ORDER BY volume DESC LIMIT 20",
            ),
            _node(
                "idea-generator", "Generate Content Ideas", OPENAI_NODE_TYPE, (720, 300),
                **_prompt(
                    "Generate ten content ideas combining trending topics with the "
                    "target keywords. Return JSON.",
                    "Trends: {{ JSON.stringify($node['Get Trending Topics'].json) }}",
                    temperature=0.9,
                ),
            ),
        ],
        "connections": {
            "Daily Content Generation": _link("Get Trending Topics", "Get Top Keywords"),
            "Get Trending Topics": _link("Generate Content Ideas"),
            "Get Top Keywords": _link("Generate Content Ideas"),
        },
        "settings": _settings(config),
    }


def _custom(config: dict) -> dict:
    return {
        "name": config.get("name") or "Custom Workflow",
        "nodes": copy.deepcopy(config.get("nodes") or []),
        "connections": copy.deepcopy(config.get("connections") or {}),
        "settings": copy.deepcopy(config.get("settings") or {}),
    }


BUILDERS: dict[str, Callable[[dict], dict]] = {
    "content-multiplication-engine": _content_multiplication_engine,
    "audience-intelligence-system": _audience_intelligence_system,
    "newsletter-automation-suite": _newsletter_automation_suite,
    "lead-qualification-pipeline": _lead_qualification_pipeline,
    "ai-content-generator": _ai_content_generator,
}


def build_template(template: str | None, config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a fresh workflow document for ``template``.

    Unknown names (and ``custom``) use the nodes, connections and settings
    carried in ``config``.
    """
    builder = BUILDERS.get(template or CUSTOM_TEMPLATE, _custom)
    return builder(dict(config or {}))


def materialize(
    template: str | None,
    name: str,
    description: str | None = None,
    configuration: dict[str, Any] | None = None,
    tags: list[str] | None = None,
    settings: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the create-workflow payload; the document is always named ``name``."""
    if not name:
        raise ValueError("name is required")

    config = dict(configuration or {})
    config["name"] = name
    document = build_template(template, config)
    document["name"] = name
    document["settings"] = {**document.get("settings", {}), **copy.deepcopy(settings or {})}
    if description:
        document["description"] = description
    if tags:
        document["tags"] = list(tags)
    return document
