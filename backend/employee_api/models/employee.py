from employee_api.db.base_class import Base
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Numeric, text
from sqlalchemy.sql import func

class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    nip = Column(String(20), unique=True, index=True, nullable=False)  # Business identifier
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    position = Column(String(100), nullable=False)
    department = Column(String(100), index=True, nullable=False)
    salary = Column(Numeric(15, 2), nullable=True)
    hire_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, server_default=text("true"), nullable=False)  # False once soft-deleted
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
