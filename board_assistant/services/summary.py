"""Executive board summary.

Runs the snapshot, health, history and cleanup analyses concurrently, sends
their combined JSON to the narrative generator and bundles everything into a
``SummaryReport``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Dict, List

from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import BoardAssistantError, require_name
from board_assistant.core.llm import safe_json_loads
from board_assistant.models.reports import NarrativeSummary, SummaryReport
from board_assistant.services.cleanup import suggest_cleanup
from board_assistant.services.health import analyze_board
from board_assistant.services.history import audit_history
from board_assistant.services.snapshot import build_snapshot


logger = logging.getLogger("board_assistant.summary")

SUMMARY_SYSTEM_PROMPT = (
    "You are a senior Trello governance consultant. Your answers are concise, "
    "decision-oriented and always structured."
)
SUMMARY_TEMPERATURE = 0.1

_INSTRUCTIONS = [
    "You are a senior Trello consultant writing a clear, actionable executive report.",
    "Analyse the JSON data below and build a summary for an operations leadership audience.",
    "Always cover: overall synthesis, major problems, risks, critical points, strategic "
    "recommendations, quick wins, blockers and an action plan.",
    "Return STRICTLY a JSON object with this structure:",
    "{\n"
    '  "summary_text": "<structured narrative text>",\n'
    '  "key_findings": ["<key finding 1>", "<key finding 2>", "..."],\n'
    '  "action_items": ["<priority action 1>", "<priority action 2>", "..."]\n'
    "}",
    "Do not add any comment outside the JSON.",
]

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def build_summary_prompt(data: Dict[str, Any]) -> str:
    payload = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return "\n\n".join(_INSTRUCTIONS + [f"JSON data to analyse:\n{payload}"])


def _to_string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() if isinstance(item, str) else str(item) for item in value]
    return [item for item in items if item]


def parse_narrative(raw: str) -> NarrativeSummary:
    """Read the model reply as JSON, falling back to the raw text.

    Tries the whole reply first, then the outermost ``{...}`` span. When
    neither parses, the trimmed reply becomes ``summary_text``.
    """

    parsed = safe_json_loads(raw)
    if not isinstance(parsed, dict):
        match = _JSON_OBJECT_RE.search(raw)
        parsed = safe_json_loads(match.group(0)) if match else None
    if not isinstance(parsed, dict):
        parsed = {}

    summary_text = parsed.get("summary_text")
    return NarrativeSummary(
        summary_text=summary_text.strip() if isinstance(summary_text, str) else raw.strip(),
        key_findings=_to_string_list(parsed.get("key_findings") or parsed.get("keyFindings")),
        action_items=_to_string_list(parsed.get("action_items") or parsed.get("actionItems")),
    )


async def _gather_or_cancel(*coros):
    """Await coroutines concurrently; on the first failure cancel and reap the rest."""

    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def generate_summary(ctx: AnalyticsContext, board_name: str) -> SummaryReport:
    board_name = require_name(board_name, "boardName")
    if ctx.narrator is None:
        raise BoardAssistantError.generation_unavailable(
            "No narrative generator is configured for executive summaries."
        )

    snapshot, health_report, history_report, cleanup_plan = await _gather_or_cancel(
        build_snapshot(ctx, board_name),
        analyze_board(ctx, board_name),
        audit_history(ctx, board_name),
        suggest_cleanup(ctx, board_name),
    )

    data = {
        "boardName": board_name,
        "snapshot": snapshot.model_dump(mode="json", by_alias=True),
        "healthReport": health_report.model_dump(mode="json", by_alias=True),
        "historyReport": history_report.model_dump(mode="json", by_alias=True),
        "cleanupPlan": cleanup_plan.model_dump(mode="json", by_alias=True),
    }
    raw = await ctx.narrator.generate(
        build_summary_prompt(data),
        system_prompt=SUMMARY_SYSTEM_PROMPT,
        temperature=SUMMARY_TEMPERATURE,
    )
    narrative = parse_narrative(raw)
    logger.info(
        "Summary for %s: %s findings, %s action items",
        board_name,
        len(narrative.key_findings),
        len(narrative.action_items),
    )

    return SummaryReport(
        board_name=snapshot.board_name,
        generated_at=ctx.now(),
        snapshot=snapshot,
        health_report=health_report,
        history_report=history_report,
        cleanup_plan=cleanup_plan,
        summary_text=narrative.summary_text,
        key_findings=narrative.key_findings,
        action_items=narrative.action_items,
    )
