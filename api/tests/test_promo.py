import re

import pytest
from sqlalchemy.exc import IntegrityError

from funnel import repo
from funnel.services import promo
from funnel.services.promo import PROMO_ALPHABET, generate_promo_code, issue_promo_code, promo_points


def test_promo_code_shape_and_alphabet():
    for _ in range(200):
        code = generate_promo_code()
        assert re.fullmatch(r"NF-[23456789ABCDEFGHJKMNPQRSTUVWXYZ]{5}-[23456789ABCDEFGHJKMNPQRSTUVWXYZ]{5}", code)
    for ambiguous in "01OIL":
        assert ambiguous not in PROMO_ALPHABET


def test_retake_points_are_lower_than_first_time():
    assert promo_points(False) == 1000
    assert promo_points(True) == 100


def test_issue_promo_code_regenerates_on_collision(monkeypatch):
    issued = []
    codes = iter(["NF-AAAAA-AAAAA", "NF-BBBBB-BBBBB"])
    monkeypatch.setattr(promo, "generate_promo_code", lambda: next(codes))

    def fake_create(code, session_id, points_value, is_retake, referrer_id):
        if code == "NF-AAAAA-AAAAA":
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))
        issued.append((code, session_id, points_value, is_retake, referrer_id))
        return {"code": code}

    monkeypatch.setattr(repo, "create_promo_code", fake_create)
    assert issue_promo_code("s1", is_retake=True, referrer_id="r1") == "NF-BBBBB-BBBBB"
    assert issued == [("NF-BBBBB-BBBBB", "s1", 100, True, "r1")]


def test_issue_promo_code_gives_up_after_repeated_collisions(monkeypatch):
    def always_collide(**kwargs):
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    monkeypatch.setattr(repo, "create_promo_code", always_collide)
    with pytest.raises(RuntimeError):
        issue_promo_code("s1", is_retake=False)
