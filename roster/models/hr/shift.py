from sqlalchemy import Column, String, Text, Enum as SQLEnum, Date, Time, Index
from roster.db.base import BaseModel
from roster.models.shared.enums import HalfDayType, ShiftType

class Shift(BaseModel):
    __tablename__ = 'shifts'
    
    user_id = Column(String(36), nullable=False)
    shift_date = Column(Date, nullable=False)
    shift_type = Column(SQLEnum(ShiftType, name='shift_type', values_callable=lambda e: [m.value for m in e]), nullable=False)
    start_time = Column(Time)  # specific_hours only
    end_time = Column(Time)
    half_day_type = Column(SQLEnum(HalfDayType, name='half_day_type', values_callable=lambda e: [m.value for m in e]))
    start_date = Column(Date)  # sick_leave / unavailable range
    end_date = Column(Date)
    notes = Column(Text)

    __table_args__ = (
        Index('ix_shifts_user_date', 'user_id', 'shift_date'),
    )
