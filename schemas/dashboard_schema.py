from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class StatCard(BaseModel):
    label: str
    value: int
    icon: str
    color: str

class DoctorStats(BaseModel):
    total: int
    pending: int
    completed: int
    attention: int

class ActivityItem(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    user: str
    time: Optional[datetime] = None
