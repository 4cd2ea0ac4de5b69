from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


# ===== AMBIENTES =====

class CleaningRoomRead(BaseModel):
    id: Optional[int] = None  # None para los ambientes fijos
    key: str
    name: str
    icon: str
    builtin: bool
    task_count: int = 0


class CleaningRoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)  # se deriva del nombre si no viene
    icon: Optional[str] = "home"


class CleaningRoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = None


class CleaningRoomTypeRead(BaseModel):
    id: int
    property_id: int
    name: str
    slug: str
    icon: str

    model_config = ConfigDict(from_attributes=True)


# ===== DEFINICIONES DE TAREAS =====

class CleaningTaskBase(BaseModel):
    room: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    reference_photo_url: Optional[str] = None
    display_order: int = 0


class CleaningTaskCreate(CleaningTaskBase):
    pass


class CleaningTaskUpdate(BaseModel):
    room: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    reference_photo_url: Optional[str] = None
    display_order: Optional[int] = None


class CleaningTaskRead(CleaningTaskBase):
    id: int
    property_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ===== VISITAS =====

class CleaningVisitOpen(BaseModel):
    visit_id: Optional[int] = None
    client_token: Optional[str] = Field(None, min_length=1, max_length=64)
    reservation_id: Optional[int] = None


class CleaningVisitClose(BaseModel):
    force: bool = False


class CleaningVisitRead(BaseModel):
    id: int
    property_id: int
    reservation_id: Optional[int] = None
    visit_date: date
    status: str
    created_by: Optional[str] = None
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CleaningStats(BaseModel):
    total: int
    completed: int
    percentage: int


class CleaningVisitSummary(CleaningVisitRead):
    reservation_title: Optional[str] = None
    stats: CleaningStats


# ===== TAREAS DE LA VISITA =====

class CleaningVisitTaskRead(BaseModel):
    id: int
    visit_id: int
    task_id: int
    task_name: Optional[str] = None
    room: Optional[str] = None
    is_completed: bool
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    photo_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CleaningChecklistEntry(BaseModel):
    """Definición + su estado en la visita (vista de checklist de un ambiente)"""
    visit_task_id: int
    task_id: int
    name: str
    description: Optional[str] = None
    reference_photo_url: Optional[str] = None
    display_order: int
    is_completed: bool
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    photo_url: Optional[str] = None


class CleaningRoomChecklist(BaseModel):
    visit: CleaningVisitRead
    room: str
    room_name: str
    icon: str
    tasks: List[CleaningChecklistEntry] = []
    loaded: int
    expected: int


class CleaningCompletionSet(BaseModel):
    is_completed: bool


class CleaningCompleteAll(BaseModel):
    visit_task_ids: List[int] = Field(default_factory=list)


class CleaningCompleteAllResult(BaseModel):
    visit_id: int
    requested: int
    updated: int


class CleaningEvidence(BaseModel):
    photo_url: str = Field(..., min_length=1)


# ===== HISTORIAL =====

class CleaningHistoryTask(BaseModel):
    id: int
    task_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    room: Optional[str] = None
    orphaned: bool = False
    is_completed: bool
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    photo_url: Optional[str] = None


class CleaningHistoryRoom(BaseModel):
    key: str
    name: str
    icon: str
    total: int
    completed: int
    tasks: List[CleaningHistoryTask] = []


class CleaningVisitDetail(BaseModel):
    visit: CleaningVisitRead
    rooms: List[CleaningHistoryRoom] = []
    stats: CleaningStats
