from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import quote

from ..config import CLOUDINARY_CLOUD_NAME
from ..errors import ConfigurationError

MAX_HEADLINE_CHARS = 80
BRAND = "NuFounders"
BRAND_URL = "nufounders.noblevision.com"


def encode_overlay_text(value: str) -> str:
    # Cloudinary text layers: commas stay literal, parentheses are escaped.
    return quote(value, safe=",").replace("(", "%28").replace(")", "%29")


def truncate_headline(headline: str) -> str:
    headline = headline or ""
    if len(headline) > MAX_HEADLINE_CHARS:
        return headline[: MAX_HEADLINE_CHARS - 3] + "..."
    return headline


def format_completed_date(value: datetime | str | None) -> str:
    if isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.now(timezone.utc)
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


class CloudinaryCertificateRenderer:
    """Builds an on-the-fly Cloudinary transformation URL; nothing is uploaded."""

    def __init__(self, cloud_name: str | None = None) -> None:
        self._cloud_name = cloud_name if cloud_name is not None else CLOUDINARY_CLOUD_NAME

    def render(self, name: str, archetype_name: str, emoji: str, headline: str, completed_date: datetime | str | None) -> str:
        if not self._cloud_name:
            raise ConfigurationError("CLOUDINARY_CLOUD_NAME is not configured")

        layers = [
            "w_1200,h_630,c_fill,b_rgb:0f0f1a",
            f"l_text:Arial_18_bold:{encode_overlay_text(BRAND)},co_rgb:e2b747,g_north_west,x_60,y_40",
            f"l_text:Arial_14_bold:{encode_overlay_text('CAREER ARCHETYPE CERTIFICATE')},co_rgb:a0a0b0,g_north,y_50",
            f"l_text:Arial_56:{encode_overlay_text(emoji or '🏆')},g_center,y_-120",
            f"l_text:Arial_14:{encode_overlay_text('This certifies that')},co_rgb:a0a0b0,g_center,y_-60",
            f"l_text:Arial_36_bold:{encode_overlay_text(name)},co_rgb:e2b747,g_center,y_-20",
            f"l_text:Arial_14:{encode_overlay_text('has been identified as a')},co_rgb:a0a0b0,g_center,y_30",
            f"l_text:Arial_28_bold:{encode_overlay_text(archetype_name)},co_rgb:ffffff,g_center,y_70",
            f"l_text:Arial_13:{encode_overlay_text(truncate_headline(headline))},co_rgb:a0a0b0,g_center,y_115,w_800,c_fit",
            f"l_text:Arial_12:{encode_overlay_text(format_completed_date(completed_date))},co_rgb:808090,g_south,y_50",
            f"l_text:Arial_10:{encode_overlay_text(BRAND_URL)},co_rgb:606070,g_south,y_30",
        ]
        return f"https://res.cloudinary.com/{self._cloud_name}/image/upload/{'/'.join(layers)}/sample"
