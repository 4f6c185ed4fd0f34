import logging
import secrets

from sqlalchemy.exc import IntegrityError

from ..config import PROMO_POINTS_FIRST, PROMO_POINTS_RETAKE

logger = logging.getLogger(__name__)

# No 0/O, 1/I/L.
PROMO_ALPHABET = "23456789ABCDEFGHJKMNPQRSTUVWXYZ"
PROMO_PREFIX = "NF"
PROMO_BODY_LENGTH = 10
MAX_ISSUE_ATTEMPTS = 3


def generate_promo_code() -> str:
    raw = "".join(secrets.choice(PROMO_ALPHABET) for _ in range(PROMO_BODY_LENGTH))
    return f"{PROMO_PREFIX}-{raw[:5]}-{raw[5:]}"


def promo_points(is_retake: bool) -> int:
    return PROMO_POINTS_RETAKE if is_retake else PROMO_POINTS_FIRST


def issue_promo_code(session_id: str, is_retake: bool, referrer_id: str | None = None) -> str:
    """Generate and record a code bound to ``session_id``; regenerates on collision."""
    from .. import repo

    candidate = generate_promo_code()
    for attempt in range(MAX_ISSUE_ATTEMPTS):
        try:
            repo.create_promo_code(
                code=candidate,
                session_id=session_id,
                points_value=promo_points(is_retake),
                is_retake=is_retake,
                referrer_id=referrer_id,
            )
            return candidate
        except IntegrityError:
            logger.warning("[promo] code collision session_id=%s attempt=%s", session_id, attempt + 1)
            candidate = generate_promo_code()
    raise RuntimeError("Could not issue a unique promo code")
