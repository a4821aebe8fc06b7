from sqlalchemy import Column, String, Boolean
from roster.db.base import BaseModel

class Employee(BaseModel):
    __tablename__ = 'employees'
    
    user_id = Column(String(36), unique=True, nullable=False, index=True)  # Reference to the auth profile
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(String(30), nullable=False, default='employee')
    is_active = Column(Boolean, default=True)
