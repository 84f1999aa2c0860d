"""Issue records shared by catalog diagnostics and advanced checks.

An issue is a plain dict so it can be stored as JSON on the diagnostic row
and returned to the dashboard unchanged. Every issue carries maxPoints and
earnedPoints; a diagnostic's score is the sum of earnedPoints over its issues.
"""

import math

SEVERITIES = ("error", "warning", "info", "success")


def round_half_up(value: float) -> int:
    """Round .5 upwards (round() in Python rounds half to even)."""
    return int(math.floor(value + 0.5))


def affected_item(record: dict, item_type: str = "product") -> dict:
    """Reference to one catalog record inside an issue."""
    return {
        "id": record.get("id"),
        "name": record.get("name") or record.get("title") or "",
        "slug": record.get("slug") or "",
        "type": item_type,
    }


def make_issue(issue_type: str, category: str, title: str, description: str,
               recommendation: str = "", max_points: int = 0, earned_points: int = 0,
               affected_items: list = None, resource_type: str = "product",
               action_available: bool = False, total_count: int = 0) -> dict:
    earned_points = max(0, min(earned_points, max_points))
    return {
        "type": issue_type,
        "category": category,
        "title": title,
        "description": description,
        "recommendation": recommendation,
        "affected_items": affected_items or [],
        "resolved_items": [],
        "resource_type": resource_type,
        "action_available": action_available,
        "maxPoints": max_points,
        "earnedPoints": earned_points,
        "score_improvement": max_points - earned_points,
        "total_count": total_count,
    }


def weighted_check(weight: int, affected: list, total: int, triggered: bool,
                   category: str, failure: dict, success: dict,
                   item_type: str = "product", action_available: bool = False) -> dict:
    """Build the failure or success issue for one weighted check.

    On failure, credit is proportional to the unaffected share of the
    population. On success the full weight is earned.

    Args:
        weight: Points this check is worth.
        affected: Records that fail the check.
        total: Size of the checked population.
        triggered: Whether the check's threshold was crossed.
        category: Issue category label.
        failure: type/title/description/recommendation for the failure issue.
        success: title/description for the success issue.
        item_type: Type stored on affected items (product|collection|blog).
        action_available: Whether automatic resolution exists.
    """
    if triggered and total > 0:
        earned = round_half_up(weight * (1 - len(affected) / total))
        return make_issue(
            failure["type"], category, failure["title"], failure["description"],
            failure["recommendation"], weight, earned,
            affected_items=[affected_item(r, item_type) for r in affected],
            resource_type=item_type,
            action_available=action_available,
            total_count=total,
        )
    return make_issue(
        "success", category, success["title"], success["description"], "",
        weight, weight, resource_type=item_type, total_count=total,
    )


def summarize_issues(issues: list) -> dict:
    """Score and per-severity counts for a list of issues."""
    counts = {severity: 0 for severity in SEVERITIES}
    for issue in issues:
        counts[issue["type"]] = counts.get(issue["type"], 0) + 1
    errors = counts["error"]
    warnings = counts["warning"]
    info = counts["info"]
    return {
        "score": sum(i["earnedPoints"] for i in issues),
        "max_score": sum(i["maxPoints"] for i in issues),
        "errors_count": errors,
        "warnings_count": warnings,
        "info_count": info,
        "total_issues": errors + warnings + info,
    }
