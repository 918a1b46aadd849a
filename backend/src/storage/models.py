from sqlalchemy import Column, String, DateTime, Integer, Text, JSON, Float, Boolean, ForeignKey
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class EnvironmentRecord(Base):
    __tablename__ = "environments"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True, index=True)
    variables = Column(JSON, nullable=False, default=list)  # [{"key": ..., "value": ...}]
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)


class CollectionRecord(Base):
    __tablename__ = "collections"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, nullable=False)


class SavedRequestRecord(Base):
    __tablename__ = "saved_requests"

    id = Column(String, primary_key=True)
    collection_id = Column(String, ForeignKey("collections.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    method = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    headers = Column(JSON, nullable=False, default=list)
    body = Column(Text)
    created_at = Column(DateTime, nullable=False)


class HistoryRecord(Base):
    __tablename__ = "request_history"

    id = Column(String, primary_key=True)
    method = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    environment = Column(String)
    status = Column(Integer, default=0)
    elapsed_ms = Column(Integer)
    success = Column(Boolean, default=False)
    error = Column(Text)
    created_at = Column(DateTime, nullable=False, index=True)


class LoadTestRecord(Base):
    __tablename__ = "load_test_results"

    id = Column(String, primary_key=True)
    environment = Column(String, nullable=False)
    collection_id = Column(String)
    request = Column(JSON)  # template snapshot for single-request runs
    concurrency = Column(Integer, nullable=False)
    iterations = Column(Integer, nullable=False)
    duration_seconds = Column(Float)
    cancelled = Column(Boolean, default=False)
    attempts = Column(JSON, nullable=False, default=list)
    aggregate = Column(JSON, nullable=False)
    per_request = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, index=True)
