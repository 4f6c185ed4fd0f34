from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from .database import Base


class SurveySession(Base):
    __tablename__ = "survey_sessions"

    session_id = Column(String(64), primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    current_step = Column(Integer, nullable=False, default=0)
    answers = Column(JSONB, nullable=False, server_default="{}")
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    archetype_result = Column(String, nullable=True)
    archetype_data = Column(JSONB, nullable=True)
    promo_code = Column(String, nullable=True)
    ai_summary = Column(JSONB, nullable=True)
    certificate_url = Column(Text, nullable=True)
    referrer_id = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PromoCode(Base):
    __tablename__ = "promo_codes"

    code = Column(String(32), primary_key=True)
    session_id = Column(String(64), ForeignKey("survey_sessions.session_id", ondelete="CASCADE"), nullable=False)
    points_value = Column(Integer, nullable=False)
    is_retake = Column(Boolean, nullable=False, default=False)
    referrer_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_promo_codes_session_id", "session_id"),)


class SurveyEvent(Base):
    __tablename__ = "survey_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event = Column(String(64), nullable=False)
    session_id = Column(String(128), nullable=True)
    step = Column(Integer, nullable=True)
    question_id = Column(String(64), nullable=True)
    value = Column(Text, nullable=True)
    meta = Column(JSONB, nullable=False, server_default="{}")
    event_timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_survey_events_session", "session_id"),)
