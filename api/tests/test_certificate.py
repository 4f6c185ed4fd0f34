from datetime import datetime, timezone

import pytest

from funnel.errors import ConfigurationError
from funnel.services.certificate import CloudinaryCertificateRenderer, encode_overlay_text, format_completed_date, truncate_headline


def test_headline_truncated_to_eighty_chars():
    long_headline = "x" * 120
    assert truncate_headline(long_headline) == "x" * 77 + "..."
    assert len(truncate_headline(long_headline)) == 80
    assert truncate_headline("short") == "short"


def test_completed_date_formatting():
    assert format_completed_date(datetime(2025, 3, 7, tzinfo=timezone.utc)) == "March 7, 2025"
    assert format_completed_date("2024-12-25T10:00:00Z") == "December 25, 2024"


def test_render_builds_cloudinary_url():
    url = CloudinaryCertificateRenderer(cloud_name="demo").render(
        name="Ada Lovelace",
        archetype_name="The Emerging Founder",
        emoji="🚀",
        headline="h" * 100,
        completed_date=datetime(2025, 3, 7, tzinfo=timezone.utc),
    )
    assert url.startswith("https://res.cloudinary.com/demo/image/upload/w_1200,h_630")
    assert url.endswith("/sample")
    assert encode_overlay_text("Ada Lovelace") in url
    assert encode_overlay_text("h" * 77 + "...") in url
    assert encode_overlay_text("March 7, 2025") in url


def test_missing_cloud_name_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        CloudinaryCertificateRenderer(cloud_name="").render("Ada", "X", "🚀", "h", None)
