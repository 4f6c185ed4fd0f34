from __future__ import annotations

from typing import Any

_SUFFIX = " — early access may be a strong fit."

# archetype -> ordered (answer field, value, line); first hit wins, then "default".
_CTA_RULES: dict[str, dict[str, Any]] = {
    "curious_explorer": {
        "rules": [
            ("barrier", "confidence_risk", "Based on your interest in entrepreneurship and your focus on building clarity and confidence before taking big risks"),
            ("motivation", "purpose_impact", "Based on your interest in meaningful work and your early-stage exploration of entrepreneurship"),
        ],
        "default": "Based on your curiosity about entrepreneurship and your current focus on exploring options before committing to income goals",
    },
    "overwhelmed_starter": {
        "rules": [
            ("barrier", "choosing_idea", "Based on your desire to start something of your own and your focus on what to sell and how to price it"),
            ("barrier", "business_setup", "Based on your interest in entrepreneurship and your need for clear structure and setup guidance"),
        ],
        "default": "Based on your interest in starting a business and your focus on figuring out what to build and how to start",
    },
    "displaced_rebuilder": {
        "rules": [
            ("motivation", "career_security", "Based on your focus on creating career stability and your need for faster paths to income"),
            ("barrier", "financial_runway", "Based on your urgency around income and your concern about financial runway"),
        ],
        "default": "Based on your need to generate income in the near term and your focus on finding customers or monetizing your skills quickly",
    },
    "pivoting_professional": {
        "rules": [
            ("motivation", "lifestyle_flexibility", "Based on your desire for career control and your focus on building something sustainable long term"),
            ("motivation", "career_security", "Based on your desire for career control and your focus on building something sustainable long term"),
            ("barrier", "capacity_support", "Based on your serious commitment to entrepreneurship and your focus on building the right systems and strategy"),
        ],
        "default": "Based on your commitment to building your own path and your focus on creating reliable income from your expertise",
    },
    "survival_freelancer": {
        "rules": [
            ("barrier", "finding_customers", "Based on your current earning activity and your focus on getting a steady flow of customers"),
            ("barrier", "choosing_idea", "Based on your current client work and your focus on improving pricing and income predictability"),
        ],
        "default": "Based on the fact that you're already generating some income and your focus on making revenue more consistent and predictable",
    },
    "emerging_founder": {
        "rules": [
            ("motivation", "wealth_scaling", "Based on your focus on long-term wealth and your commitment to growing something scalable"),
            ("barrier", "capacity_support", "Based on your active business and your focus on building leverage and reducing founder workload"),
        ],
        "default": "Based on your existing business activity and your focus on scaling revenue and building stronger systems",
    },
}

GENERIC_CTA = "Based on your responses, early access may be a strong fit."


def personalized_cta(archetype_id: str, motivation: str | None = None, barrier: str | None = None) -> str:
    entry = _CTA_RULES.get(str(archetype_id or ""))
    if not entry:
        return GENERIC_CTA
    signals = {"motivation": motivation, "barrier": barrier}
    for field, value, line in entry["rules"]:
        if signals.get(field) == value:
            return line + _SUFFIX
    return entry["default"] + _SUFFIX


def personalized_cta_for_answers(archetype_id: str, answers: dict[str, Any]) -> str:
    answers = answers or {}
    motivation = answers.get("motivation")
    barrier = answers.get("biggest_barrier")
    return personalized_cta(
        archetype_id,
        motivation=motivation if isinstance(motivation, str) else None,
        barrier=barrier if isinstance(barrier, str) else None,
    )
