from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import date, datetime
from uuid import UUID

Role = Literal["admin", "coach", "volunteer"]
InjuryStatus = Literal["none", "rehab", "restricted", "unavailable"]

# -------------------------------
# User Schemas
# -------------------------------
class UserBase(BaseModel):
    name: str
    email: EmailStr
    contact_number: Optional[str] = None
    role: Role

class UserCreate(UserBase):
    pass

class UserUpdate(UserBase):
    pass

class ProfileUpdate(BaseModel):
    name: str
    contact_number: Optional[str] = None
    profile_image_url: Optional[str] = None

class UserOut(UserBase):
    id: UUID
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UserCreated(BaseModel):
    user: UserOut
    temporary_password: str

class UserRef(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role

    model_config = ConfigDict(from_attributes=True)

# -------------------------------
# Team Schemas
# -------------------------------
class TeamBase(BaseModel):
    name: str
    main_coach_id: Optional[UUID] = None
    coach_ids: List[UUID] = []
    volunteer_ids: List[UUID] = []
    notes: Optional[str] = None

class TeamCreate(TeamBase):
    pass

class TeamOut(TeamBase):
    id: UUID
    created_at: Optional[datetime] = None
    main_coach: Optional[UserRef] = None
    player_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class TeamPlayer(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    positions: List[str] = []

    model_config = ConfigDict(from_attributes=True)

class TeamDetail(TeamOut):
    coaches: List[UserRef] = []
    volunteers: List[UserRef] = []
    players: List[TeamPlayer] = []

# -------------------------------
# Position Schemas
# -------------------------------
class PositionBase(BaseModel):
    name: str
    sort_order: Optional[int] = None

class PositionCreate(PositionBase):
    pass

class PositionOut(PositionBase):
    id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# -------------------------------
# Player Schemas
# -------------------------------
class PlayerBase(BaseModel):
    first_name: str
    last_name: str
    preferred_name: Optional[str] = None
    dob: date
    positions: List[str] = []
    team_id: Optional[UUID] = None
    profile_image_url: Optional[str] = None
    contact_number: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_relationship: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    dominant_foot: Optional[str] = None
    jersey_number: Optional[int] = None
    medical_notes: Optional[str] = None
    injury_status: InjuryStatus = "none"
    medication_notes: Optional[str] = None
    photo_consent: bool = False
    medical_consent: bool = False
    transport_consent: bool = False
    strengths: Optional[str] = None
    development_focus: Optional[str] = None
    coach_summary: Optional[str] = None
    notes: Optional[str] = None

class PlayerCreate(PlayerBase):
    pass

class PlayerOut(BaseModel):
    # Sensitive fields are Optional here because they are blanked for view-only roles.
    id: UUID
    first_name: str
    last_name: str
    preferred_name: Optional[str] = None
    dob: date
    positions: List[str] = []
    team_id: Optional[UUID] = None
    team_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    contact_number: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_relationship: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    dominant_foot: Optional[str] = None
    jersey_number: Optional[int] = None
    medical_notes: Optional[str] = None
    injury_status: Optional[InjuryStatus] = None
    medication_notes: Optional[str] = None
    photo_consent: Optional[bool] = None
    medical_consent: Optional[bool] = None
    transport_consent: Optional[bool] = None
    strengths: Optional[str] = None
    development_focus: Optional[str] = None
    coach_summary: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sensitive_redacted: bool = False

class AttendanceSummaryOut(BaseModel):
    last_30_days_total_sessions: int
    last_30_days_attended_sessions: int
    last_30_days_attendance_pct: int
    last_attendance_date: Optional[date] = None

class PlayerDetail(PlayerOut):
    age: int
    attendance_summary: AttendanceSummaryOut

# -------------------------------
# Attendance Schemas
# -------------------------------
class AttendanceSave(BaseModel):
    # player id -> points; raw values are clamped by the editor, not rejected.
    records: Dict[UUID, Any] = Field(default_factory=dict)

class AttendanceOut(BaseModel):
    id: UUID
    date: date
    player_id: UUID
    team_id: Optional[UUID] = None
    points: int
    updated_by_user_id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AttendanceRow(AttendanceOut):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    team_name: Optional[str] = None

class AttendanceList(BaseModel):
    records: List[AttendanceRow]
    unique_dates: List[date]

class DayEntry(BaseModel):
    player_id: UUID
    first_name: str
    last_name: str
    team_id: Optional[UUID] = None
    team_name: str
    points: int
    exists: bool

class AttendanceDay(BaseModel):
    date: date
    can_edit: bool
    entries: List[DayEntry]

class DateSubmission(BaseModel):
    team_id: Optional[UUID] = None
    team_name: str
    count: int

class PlayerStatsOut(BaseModel):
    player_id: UUID
    first_name: str
    last_name: str
    team_name: Optional[str] = None
    total_points: int
    attendance_count: int

class TeamStatsOut(BaseModel):
    team_id: str
    team_name: str
    total_points: int
    player_count: int

class AnalyticsOut(BaseModel):
    player_stats: List[PlayerStatsOut]
    team_stats: List[TeamStatsOut]
