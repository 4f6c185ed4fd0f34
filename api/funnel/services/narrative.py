from __future__ import annotations

import json
import logging
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from ..config import OPENAI_API_KEY, OPENAI_BASE_URL, OPENAI_MODEL, OPENAI_TIMEOUT_SECONDS
from ..errors import ConfigurationError
from ..schemas import AISummary

logger = logging.getLogger(__name__)

QUESTION_LABELS = {
    "employment_status": "Employment Status",
    "considering_business": "Business Interest Level",
    "income_urgency": "Income Urgency",
    "motivation": "Primary Motivation",
    "biggest_barrier": "Biggest Barrier",
    "income_goal": "Income Goal",
    "support_types": "Desired Support Types",
    "platform_helpfulness": "Platform Interest",
    "early_access": "Early Access Interest",
    "age_range": "Age Range",
    "education": "Education Level",
    "industry": "Industry Background",
    "experience_years": "Years of Experience",
    "state": "Location",
    "prior_income": "Prior Income Range",
}

VALUE_LABELS = {
    "employed_full_time": "Employed full-time",
    "contracted": "Contracted",
    "employed_itching": "Employed but eager to start a business",
    "laid_off_year": "Recently laid off",
    "self_employed": "Self-employed",
    "exploring_only": "Exploring entrepreneurship",
    "interested_unclear": "Interested but unclear on direction",
    "actively_exploring": "Actively exploring ideas",
    "building_intentionally": "Building intentionally",
    "operating_growing": "Operating and growing a business",
    "not_pursuing": "Focused on career transition",
    "exploring": "Exploring, no urgency",
    "about_a_year": "Within about a year",
    "3_6_months": "Within 3-6 months",
    "1_3_months": "Within 1-3 months",
    "asap": "As soon as possible",
    "not_income_driven": "Purpose-driven, not income-focused",
    "immediate_financial": "Financial stability",
    "lifestyle_flexibility": "Lifestyle flexibility",
    "career_security": "Career security",
    "limited_opportunities": "Limited job opportunities",
    "purpose_impact": "Purpose and impact",
    "wealth_scaling": "Wealth building",
    "business_setup": "Business setup and operations",
    "finding_customers": "Finding customers",
    "choosing_idea": "Choosing the right idea",
    "confidence_risk": "Confidence and risk",
    "capacity_support": "Capacity and support",
    "financial_runway": "Financial runway",
    "first_customers": "Getting first paying customers",
    "500_1500": "$500-$1,500/month",
    "1500_3500": "$1,500-$3,500/month",
    "3500_7000": "$3,500-$7,000/month",
    "7000_12000": "$7,000-$12,000/month",
    "replace_prior": "Replacing full prior income",
}

SYSTEM_PROMPT = (
    "You are a career analyst who generates personalized, empowering executive summaries "
    "for displaced professionals exploring entrepreneurship. Always return valid JSON."
)


def humanize(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(humanize(v) for v in value)
    v = str(value)
    return VALUE_LABELS.get(v, v.replace("_", " "))


def profile_lines(answers: dict[str, Any]) -> list[str]:
    lines: list[str] = []
    for qid, value in (answers or {}).items():
        if value is None or value == "" or value == []:
            continue
        # Contact sidecars stay out of the prompt.
        if qid.endswith("_email"):
            continue
        label = QUESTION_LABELS.get(qid, qid.replace("_", " "))
        lines.append(f"- {label}: {humanize(value)}")
    return lines


def build_prompt(name: str, archetype_name: str, archetype_headline: str, answers: dict[str, Any]) -> str:
    profile = "\n".join(profile_lines(answers))
    return f"""A user named "{name}" has just completed our Career Archetype Survey and was classified as:

**{archetype_name}** — {archetype_headline}

Their survey profile:
{profile}

Generate a personalized executive summary for this person. Your response should:

1. Be warm, empowering, and specific to their situation, not generic
2. Reference their actual answers (industry, motivation, barriers, etc.)
3. Highlight their unique strengths based on their profile
4. Provide 3-4 specific, actionable next steps tailored to their archetype and answers
5. End with a genuine encouragement message that references their potential

Return a JSON object with this structure:
{{
  "headline": "A single-sentence personalized tagline for this person (12 words max)",
  "summary": "2-3 paragraphs of personalized analysis (200-300 words)",
  "strengths": ["strength1", "strength2", "strength3"],
  "nextSteps": ["step1", "step2", "step3", "step4"],
  "encouragement": "A warm, specific closing message (2-3 sentences)"
}}"""


class OpenAINarrativeGenerator:
    def __init__(self, api_key: str | None = None, model: str | None = None, client: OpenAI | None = None) -> None:
        self._api_key = api_key if api_key is not None else OPENAI_API_KEY
        self._model = model or OPENAI_MODEL
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self._api_key, base_url=OPENAI_BASE_URL, timeout=OPENAI_TIMEOUT_SECONDS)
        return self._client

    def generate(self, name: str, archetype_id: str, archetype_name: str, archetype_headline: str, answers: dict[str, Any]) -> AISummary:
        client = self._get_client()
        response = client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(name, archetype_name, archetype_headline, answers)},
            ],
            response_format={"type": "json_object"},
            temperature=0.7,
            max_tokens=1200,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("No content in narrative response")
        try:
            return AISummary.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("[narrative] malformed response for archetype=%s: %s", archetype_id, exc)
            raise ValueError("Malformed narrative response") from exc
