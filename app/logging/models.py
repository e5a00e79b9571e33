"""Database models for the request log."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float, Text
from app.core.database import Base


class RequestLog(Base):
    """One API request/response pair, or one handled error."""

    __tablename__ = "request_log"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=datetime.now, index=True)
    method = Column(String, nullable=False)
    path = Column(String, nullable=False)
    status_code = Column(Integer, nullable=False)
    client_ip = Column(String, nullable=True)
    request_body = Column(Text, nullable=True)
    response_body = Column(Text, nullable=True)
    error_type = Column(String, nullable=True)  # exception class for handled errors
    processing_time = Column(Float, nullable=True)  # ms
    user_agent = Column(String, nullable=True)
    username = Column(String, nullable=True)
    hostname = Column(String, nullable=True)
    application_id = Column(String, nullable=True)
