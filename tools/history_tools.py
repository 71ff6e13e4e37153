"""Tool to search the claim tool-call history stored in SQLite."""

from agents import function_tool

from storage import search_history


def format_history(rows: list[dict]) -> str:
    if not rows:
        return "No claim tool history found."
    lines: list[str] = []
    for row in rows:
        success = row.get("success")
        status = "✅ Success" if success is True else "❌ Failed" if success is False else "⏳ Unknown"
        lines.append(f"#{row['id']} [{row['created_at']}] {row['tool_name']} | {status}")
        if row.get("arguments"):
            lines.append(f"  args: {row['arguments']}")
        summary = row.get("result_summary", "")[:150]
        if len(row.get("result_summary", "")) > 150:
            summary += "..."
        lines.append(f"  result: {summary}")
    return "Claim tool history (newest first):\n\n" + "\n".join(lines)


@function_tool
def search_claim_history(tool_name: str | None = None, limit: int = 20) -> str:
    """Search earlier claim tool calls, e.g. to find what was prepared or submitted before.

    Args:
        tool_name: Only show calls to this tool (e.g. 'submit_claim'); omit for all tools.
        limit: Maximum number of calls to return (default 20, max 100).

    Returns:
        One entry per call with its arguments, status and a short result summary.
    """
    print("Tool call: search_claim_history")
    limit = max(1, min(limit, 100))
    return format_history(search_history(tool_name=tool_name, limit=limit))
