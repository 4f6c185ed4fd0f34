from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class Archetype:
    id: str
    name: str
    emoji: str
    headline: str
    body: tuple[str, ...]
    bullets: tuple[str, ...]
    solution: str
    cta: str


ARCHETYPES: tuple[Archetype, ...] = (
    Archetype(
        id="curious_explorer",
        name="The Curious Explorer",
        emoji="🔭",
        headline="You're Exploring What's Possible — And That's Exactly Where Most Founders Start.",
        body=(
            "Right now, you're in discovery mode. You're curious about entrepreneurship, but you're still figuring out if it's the right path for you.",
            "Most successful founders don't start with certainty. They start with curiosity, skill, and a desire for more control over their future.",
            "Where people like you usually get stuck is:",
        ),
        bullets=(
            "Too many ideas",
            "Not knowing what's realistic",
            "Consuming information without clear next steps",
        ),
        solution="NuFounders was built to help people move from learning to testing to earning without needing to go all in before you're ready.",
        cta="The fastest progress usually comes from testing small, low-risk ways to turn skills into real market demand.",
    ),
    Archetype(
        id="overwhelmed_starter",
        name="The Overwhelmed Starter",
        emoji="🧩",
        headline="You're Ready To Start — You Just Need a Clear Path.",
        body=(
            "You're past curiosity. You want to build something of your own, you just don't want to waste time, money, or energy going in the wrong direction.",
            "Most people in your stage don't fail because they lack ability. They stall because they lack:",
        ),
        bullets=(
            "Clear sequencing",
            "Offer clarity",
            "Confidence in what will actually sell",
        ),
        solution="NuFounders helps you go from idea to offer to customers to revenue, with built-in marketplace exposure and guided execution.",
        cta="If you want to see how this could accelerate your first real revenue, early access may be worth exploring.",
    ),
    Archetype(
        id="displaced_rebuilder",
        name="The Recently Displaced Rebuilder",
        emoji="🔨",
        headline="You're Rebuilding — And That Can Become Your Strongest Advantage.",
        body=(
            "You're not just exploring entrepreneurship. You're looking for stability, control, and a path forward that isn't dependent on employer decisions.",
            "Many strong businesses are started during career transition periods, not despite them but because of them.",
            "Right now your biggest leverage is:",
        ),
        bullets=(
            "Existing skills",
            "Speed to market",
            "Focus on real income, not theory",
        ),
        solution="NuFounders was designed to shorten the path from skills to customers to income through AI matching and marketplace access.",
        cta="If you're looking for faster ways to turn experience into income, early cohort access could be a strong fit.",
    ),
    Archetype(
        id="pivoting_professional",
        name="The Pivoting Professional",
        emoji="🧭",
        headline="You're Positioned To Build Something Real — Not Just Experiment.",
        body=(
            "You're approaching entrepreneurship intentionally. You're not looking for hype, you're looking for a model that works.",
            "You likely already have:",
        ),
        bullets=(
            "Marketable expertise",
            "Professional credibility",
            "Real-world problem knowledge",
        ),
        solution="NuFounders focuses on turning professional skill into scalable revenue opportunities, not just side projects.",
        cta="If you're serious about building this correctly and efficiently, early access may be worth reviewing.",
    ),
    Archetype(
        id="survival_freelancer",
        name="The Survival Freelancer",
        emoji="⚡",
        headline="You're Already Doing This — Now It's About Consistency and Scale.",
        body=(
            "You've already crossed the hardest line: you've proven someone will pay you.",
            "Now the challenge usually becomes:",
        ),
        bullets=(
            "Predictable customer flow",
            "Pricing confidence",
            "Systems that remove chaos",
        ),
        solution="NuFounders helps freelancers become business owners with customer pipeline support, offer packaging, and marketplace distribution.",
        cta="If you want to turn inconsistent income into reliable revenue, you may want to explore early cohort access.",
    ),
    Archetype(
        id="emerging_founder",
        name="The Emerging Founder",
        emoji="👑",
        headline="You're In Founder Mode — Now It's About Leverage.",
        body=("You already think like a business owner. Your focus is likely shifting toward:",),
        bullets=(
            "Scaling revenue",
            "Reducing founder bottlenecks",
            "Increasing leverage through systems and distribution",
        ),
        solution="NuFounders combines AI-driven opportunity matching with marketplace exposure and founder-level growth tooling.",
        cta="If you're looking for leverage, not just learning, early access may be a strong fit.",
    ),
)

_BY_ID = {a.id: a for a in ARCHETYPES}

_BUILDING = {"actively_exploring", "building_intentionally"}
_URGENT = {"asap", "1_3_months"}
_MID_RANGE = {"3_6_months", "about_a_year"}
_WITHIN_SIX_MONTHS = {"asap", "1_3_months", "3_6_months"}
_INDEPENDENCE_MOTIVATIONS = {"lifestyle_flexibility", "purpose_impact", "wealth_scaling", "career_security"}
_NO_URGENCY = {"exploring", "not_income_driven"}


def _signals(answers: dict[str, Any]) -> dict[str, Any]:
    answers = answers or {}
    return {
        "employment": answers.get("employment_status"),
        "interest": answers.get("considering_business"),
        "urgency": answers.get("income_urgency"),
        "motivation": answers.get("motivation"),
    }


# Evaluated top to bottom; the first matching rule wins.
CLASSIFICATION_RULES: list[tuple[str, Callable[[dict[str, Any]], bool]]] = [
    (
        "emerging_founder",
        lambda s: s["employment"] == "self_employed" or s["interest"] == "operating_growing",
    ),
    (
        "survival_freelancer",
        lambda s: s["interest"] in _BUILDING and s["urgency"] in _URGENT and s["employment"] != "laid_off_year",
    ),
    (
        "pivoting_professional",
        lambda s: s["interest"] in _BUILDING and s["motivation"] in _INDEPENDENCE_MOTIVATIONS and s["urgency"] in _MID_RANGE,
    ),
    (
        "displaced_rebuilder",
        lambda s: s["employment"] == "laid_off_year" and s["urgency"] in _WITHIN_SIX_MONTHS,
    ),
    (
        "overwhelmed_starter",
        lambda s: s["interest"] in {"interested_unclear", "actively_exploring"} and s["urgency"] not in _NO_URGENCY,
    ),
    (
        "curious_explorer",
        lambda s: s["interest"] in {"exploring_only", "not_pursuing"} or s["urgency"] in _NO_URGENCY,
    ),
    ("displaced_rebuilder", lambda s: s["employment"] == "laid_off_year"),
]

FALLBACK_ARCHETYPE_ID = "curious_explorer"


def get_archetype(archetype_id: str) -> Archetype | None:
    return _BY_ID.get(str(archetype_id or ""))


def classify_archetype(answers: dict[str, Any]) -> Archetype:
    signals = _signals(answers)
    for archetype_id, matches in CLASSIFICATION_RULES:
        if matches(signals):
            return _BY_ID[archetype_id]
    return _BY_ID[FALLBACK_ARCHETYPE_ID]


def archetype_payload(archetype: Archetype) -> dict[str, str]:
    """Snapshot stored on the session at completion time."""
    return {"name": archetype.name, "emoji": archetype.emoji, "headline": archetype.headline}


def archetype_to_dict(archetype: Archetype) -> dict[str, Any]:
    return {
        "id": archetype.id,
        "name": archetype.name,
        "emoji": archetype.emoji,
        "headline": archetype.headline,
        "body": list(archetype.body),
        "bullets": list(archetype.bullets),
        "solution": archetype.solution,
        "cta": archetype.cta,
    }
