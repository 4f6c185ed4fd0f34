from typing import Any

VALID_OPERATORS = {"eq", "neq", "in", "not_in"}


def evaluate_condition(operator: str, actual: Any, trigger_value: Any) -> bool:
    if operator == "eq":
        return actual == trigger_value
    if operator == "neq":
        return actual != trigger_value
    if operator == "in":
        return isinstance(trigger_value, list) and actual in trigger_value
    if operator == "not_in":
        return isinstance(trigger_value, list) and actual not in trigger_value
    return False


def skip_target(question_id: str, rules: list[dict[str, Any]], answers: dict[str, Any]) -> str | None:
    """Return the question id a skip_to rule jumps to, or None for plain succession."""
    actual = (answers or {}).get(question_id)
    for rule in rules or []:
        if rule.get("type") != "skip_to":
            continue
        if evaluate_condition(rule.get("operator", "eq"), actual, rule.get("trigger_value")):
            target = str(rule.get("target") or "").strip()
            if target:
                return target
    return None
