# backend/academy/models.py

from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, Integer, JSON, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from academy.db import Base

USER_ROLES = ("admin", "coach", "volunteer")
EDIT_ROLES = ("admin", "coach")
INJURY_STATUSES = ("none", "rehab", "restricted", "unavailable")

# -------------------------------
# Users (academy staff)
# -------------------------------
class User(Base):
    __tablename__ = "users"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    contact_number = Column(String)
    role = Column(String, nullable=False, default="volunteer")
    profile_image_url = Column(String)
    password_hash = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    coached_teams = relationship("Team", back_populates="main_coach")

    @property
    def can_edit(self) -> bool:
        return self.role in EDIT_ROLES

# -------------------------------
# Teams
# -------------------------------
class Team(Base):
    __tablename__ = "teams"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    main_coach_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    coach_ids = Column(JSON, nullable=False, default=list)
    volunteer_ids = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    main_coach = relationship("User", back_populates="coached_teams")
    players = relationship("Player", back_populates="team")

# -------------------------------
# Positions
# -------------------------------
class Position(Base):
    __tablename__ = "positions"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# -------------------------------
# Players
# -------------------------------
class Player(Base):
    __tablename__ = "players"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    preferred_name = Column(String)
    dob = Column(Date, nullable=False)
    positions = Column(JSON, nullable=False, default=list)
    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="SET NULL"))
    profile_image_url = Column(String)
    contact_number = Column(String)
    guardian_name = Column(String)
    guardian_relationship = Column(String)
    guardian_phone = Column(String)
    guardian_email = Column(String)
    emergency_contact_name = Column(String)
    emergency_contact_relationship = Column(String)
    emergency_contact_phone = Column(String)
    dominant_foot = Column(String)
    jersey_number = Column(Integer)
    medical_notes = Column(Text)
    injury_status = Column(String, nullable=False, default="none")
    medication_notes = Column(Text)
    photo_consent = Column(Boolean, default=False)
    medical_consent = Column(Boolean, default=False)
    transport_consent = Column(Boolean, default=False)
    strengths = Column(Text)
    development_focus = Column(Text)
    coach_summary = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    team = relationship("Team", back_populates="players")
    attendance_records = relationship(
        "Attendance", back_populates="player", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

# -------------------------------
# Attendance
# -------------------------------
class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("date", "player_id", name="uq_attendance_date_player"),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    player_id = Column(Uuid(as_uuid=True), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    # Copied from the player when the row is written; not kept in sync afterwards.
    team_id = Column(Uuid(as_uuid=True), index=True)
    points = Column(Integer, nullable=False, default=1)
    # Position within the save that wrote the row; orders ties inside one date.
    seq = Column(Integer, nullable=False, default=0)
    updated_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    player = relationship("Player", back_populates="attendance_records")
    updated_by = relationship("User")
