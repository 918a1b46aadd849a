"""Persistence for environments, collections, request history and load test results."""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Any, Tuple

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from utils.config import settings
from utils.errors import ConflictError
from .models import (
    Base, EnvironmentRecord, CollectionRecord, SavedRequestRecord,
    HistoryRecord, LoadTestRecord,
)

logger = logging.getLogger(__name__)


class Storage:
    """Handles storage and retrieval of application records."""

    def __init__(self, database_url: str = None):
        database_url = database_url or settings.database_url
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def get_session(self) -> Session:
        return self.SessionLocal()

    # Environments

    def create_environment(self, name: str, variables: List[Dict[str, str]]) -> Dict[str, Any]:
        """Store a new environment; names are unique."""
        with self.get_session() as db:
            if db.query(EnvironmentRecord).filter(EnvironmentRecord.name == name).first():
                raise ConflictError(f"Environment '{name}' already exists")
            record = EnvironmentRecord(
                id=str(uuid.uuid4()),
                name=name,
                variables=variables,
                created_at=datetime.utcnow(),
            )
            db.add(record)
            db.commit()
            logger.info(f"Created environment {name} with {len(variables)} variables")
            return self._environment_to_dict(record)

    def list_environments(self) -> List[Dict[str, Any]]:
        with self.get_session() as db:
            records = db.query(EnvironmentRecord).order_by(EnvironmentRecord.created_at.desc()).all()
            return [self._environment_to_dict(r) for r in records]

    def get_environment(self, environment_id: str) -> Optional[Dict[str, Any]]:
        with self.get_session() as db:
            record = db.get(EnvironmentRecord, environment_id)
            return self._environment_to_dict(record) if record else None

    def get_environment_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Look up the environment used to resolve requests."""
        with self.get_session() as db:
            record = db.query(EnvironmentRecord).filter(EnvironmentRecord.name == name).first()
            return self._environment_to_dict(record) if record else None

    def update_environment(self, environment_id: str, name: str,
                           variables: List[Dict[str, str]]) -> Optional[Dict[str, Any]]:
        with self.get_session() as db:
            record = db.get(EnvironmentRecord, environment_id)
            if not record:
                return None
            clash = db.query(EnvironmentRecord).filter(
                EnvironmentRecord.name == name, EnvironmentRecord.id != environment_id
            ).first()
            if clash:
                raise ConflictError(f"Environment '{name}' already exists")
            record.name = name
            record.variables = variables
            record.updated_at = datetime.utcnow()
            db.commit()
            return self._environment_to_dict(record)

    def delete_environment(self, environment_id: str) -> bool:
        with self.get_session() as db:
            deleted = db.query(EnvironmentRecord).filter(EnvironmentRecord.id == environment_id).delete()
            db.commit()
            return deleted > 0

    # Collections and saved requests

    def create_collection(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        with self.get_session() as db:
            record = CollectionRecord(
                id=str(uuid.uuid4()),
                name=name,
                description=description,
                created_at=datetime.utcnow(),
            )
            db.add(record)
            db.commit()
            return self._collection_to_dict(record, request_count=0)

    def list_collections(self) -> List[Dict[str, Any]]:
        with self.get_session() as db:
            records = db.query(CollectionRecord).order_by(CollectionRecord.created_at.desc()).all()
            return [
                self._collection_to_dict(r, self._count_requests(db, r.id))
                for r in records
            ]

    def get_collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        with self.get_session() as db:
            record = db.get(CollectionRecord, collection_id)
            if not record:
                return None
            return self._collection_to_dict(record, self._count_requests(db, record.id))

    def delete_collection(self, collection_id: str) -> bool:
        """Delete a collection and every request saved in it."""
        with self.get_session() as db:
            db.query(SavedRequestRecord).filter(
                SavedRequestRecord.collection_id == collection_id
            ).delete()
            deleted = db.query(CollectionRecord).filter(CollectionRecord.id == collection_id).delete()
            db.commit()
            return deleted > 0

    def add_request(self, collection_id: str, request_data: Dict[str, Any]) -> Dict[str, Any]:
        with self.get_session() as db:
            record = SavedRequestRecord(
                id=str(uuid.uuid4()),
                collection_id=collection_id,
                name=request_data["name"],
                method=request_data["method"],
                url=request_data["url"],
                headers=request_data.get("headers") or [],
                body=request_data.get("body"),
                created_at=datetime.utcnow(),
            )
            db.add(record)
            db.commit()
            return self._request_to_dict(record)

    def list_requests(self, collection_id: str) -> List[Dict[str, Any]]:
        """Saved requests of a collection, oldest first."""
        with self.get_session() as db:
            records = db.query(SavedRequestRecord).filter(
                SavedRequestRecord.collection_id == collection_id
            ).order_by(SavedRequestRecord.created_at.asc()).all()
            return [self._request_to_dict(r) for r in records]

    # Request history

    def add_history(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        with self.get_session() as db:
            record = HistoryRecord(
                id=str(uuid.uuid4()),
                created_at=datetime.utcnow(),
                **entry
            )
            db.add(record)
            db.commit()
            return self._history_to_dict(record)

    def list_history(self, limit: int, offset: int = 0, method: Optional[str] = None,
                     search: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of history, newest first, and the total match count."""
        with self.get_session() as db:
            query = db.query(HistoryRecord)
            if method:
                query = query.filter(HistoryRecord.method == method.upper())
            if search:
                query = query.filter(HistoryRecord.url.contains(search))
            total = query.count()
            records = query.order_by(HistoryRecord.created_at.desc()).offset(offset).limit(limit).all()
            return [self._history_to_dict(r) for r in records], total

    def delete_history(self, history_id: str) -> bool:
        with self.get_session() as db:
            deleted = db.query(HistoryRecord).filter(HistoryRecord.id == history_id).delete()
            db.commit()
            return deleted > 0

    def clear_history(self) -> int:
        with self.get_session() as db:
            deleted = db.query(HistoryRecord).delete()
            db.commit()
            return deleted

    # Load test results

    def save_load_test_result(self, result_data: Dict[str, Any]) -> str:
        """Store a load test report and return its id."""
        with self.get_session() as db:
            record = LoadTestRecord(
                id=str(uuid.uuid4()),
                created_at=datetime.utcnow(),
                **result_data
            )
            db.add(record)
            db.commit()
            logger.info(f"Stored load test result {record.id}")
            return record.id

    def get_load_test_result(self, result_id: str) -> Optional[Dict[str, Any]]:
        with self.get_session() as db:
            record = db.get(LoadTestRecord, result_id)
            if not record:
                return None
            return {
                "id": record.id,
                "environment": record.environment,
                "collection_id": record.collection_id,
                "request": record.request,
                "concurrency": record.concurrency,
                "iterations": record.iterations,
                "duration_seconds": record.duration_seconds,
                "cancelled": record.cancelled,
                "attempts": record.attempts,
                "aggregate": record.aggregate,
                "per_request": record.per_request,
                "created_at": record.created_at.isoformat(),
            }

    @staticmethod
    def _count_requests(db: Session, collection_id: str) -> int:
        return db.query(SavedRequestRecord).filter(
            SavedRequestRecord.collection_id == collection_id
        ).count()

    @staticmethod
    def _environment_to_dict(record: EnvironmentRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "name": record.name,
            "variables": list(record.variables or []),
            "created_at": record.created_at.isoformat(),
        }

    @staticmethod
    def _collection_to_dict(record: CollectionRecord, request_count: int) -> Dict[str, Any]:
        return {
            "id": record.id,
            "name": record.name,
            "description": record.description,
            "request_count": request_count,
            "created_at": record.created_at.isoformat(),
        }

    @staticmethod
    def _request_to_dict(record: SavedRequestRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "collection_id": record.collection_id,
            "name": record.name,
            "method": record.method,
            "url": record.url,
            "headers": list(record.headers or []),
            "body": record.body,
            "created_at": record.created_at.isoformat(),
        }

    @staticmethod
    def _history_to_dict(record: HistoryRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "method": record.method,
            "url": record.url,
            "environment": record.environment,
            "status": record.status,
            "elapsed_ms": record.elapsed_ms,
            "success": record.success,
            "error": record.error,
            "created_at": record.created_at.isoformat(),
        }
