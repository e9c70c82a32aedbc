#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Storage module: save/load/list/delete for named DCF models and scenarios.

DataService is the port; backends:
  - LocalFileDataService: one JSON file per record in a directory
  - SqlDataService: SQLAlchemy engine (sqlite file by default, any URL works)

The valuation engine never imports this module.
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import ConfigDict, Field, ValidationError
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from ..dcf.models import CamelModel, DCFDataSet, DCFResults
from ..utils import DATABASE_URL, STORAGE_BACKEND, STORAGE_DIR, get_logger

logger = get_logger(__name__)


class StorageError(Exception):
    """Raised when a storage backend cannot read or write a record."""

    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DCFModel(CamelModel):
    """A named, saved valuation."""

    model_config = ConfigDict(protected_namespaces=())

    id: Optional[str] = None
    model_name: str
    company_name: Optional[str] = None
    dataset: DCFDataSet = Field(default_factory=DCFDataSet)
    results: Optional[DCFResults] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DCFScenario(CamelModel):
    """A variant of a model's inputs, ordered within its model."""

    model_config = ConfigDict(protected_namespaces=())

    id: Optional[str] = None
    model_id: str
    scenario_name: str
    dataset: DCFDataSet = Field(default_factory=DCFDataSet)
    results: Optional[DCFResults] = None
    is_base_scenario: bool = False
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _stamp(record: Union[DCFModel, DCFScenario]) -> Union[DCFModel, DCFScenario]:
    """Assign an id if missing, keep created_at, refresh updated_at."""
    now = _now()
    return record.model_copy(update={
        "id": record.id or str(uuid.uuid4()),
        "created_at": record.created_at or now,
        "updated_at": now,
    })


def _sort_key_updated(record: DCFModel) -> datetime:
    return record.updated_at or datetime.min.replace(tzinfo=timezone.utc)


class DataService(ABC):
    """Persistence port for models and scenarios."""

    @abstractmethod
    def save_model(self, model: DCFModel) -> str:
        ...

    @abstractmethod
    def load_model(self, model_id: str) -> Optional[DCFModel]:
        ...

    @abstractmethod
    def list_models(self) -> List[DCFModel]:
        """All models, most recently updated first."""
        ...

    @abstractmethod
    def delete_model(self, model_id: str) -> None:
        ...

    @abstractmethod
    def save_scenario(self, scenario: DCFScenario) -> str:
        ...

    @abstractmethod
    def load_scenario(self, scenario_id: str) -> Optional[DCFScenario]:
        ...

    @abstractmethod
    def list_scenarios(self, model_id: str) -> List[DCFScenario]:
        """Scenarios of one model in sort order."""
        ...

    @abstractmethod
    def delete_scenario(self, scenario_id: str) -> None:
        ...

    def reorder_scenarios(self, model_id: str, scenario_ids: Sequence[str]) -> None:
        """Set sort_order to each id's position in scenario_ids."""
        for index, scenario_id in enumerate(scenario_ids):
            scenario = self.load_scenario(scenario_id)
            if scenario is None or scenario.model_id != model_id:
                logger.warning(f"Skipping scenario {scenario_id}: not found in model {model_id}")
                continue
            self._write_scenario(scenario.model_copy(update={"sort_order": index}))

    @abstractmethod
    def _write_scenario(self, scenario: DCFScenario) -> None:
        ...


# ============================================================================
# Local JSON files
# ============================================================================


class LocalFileDataService(DataService):
    """Records as `dcf_model_<id>.json` / `dcf_scenario_<id>.json` files."""

    MODEL_PREFIX = "dcf_model_"
    SCENARIO_PREFIX = "dcf_scenario_"

    def __init__(self, directory: Union[str, Path] = STORAGE_DIR):
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.directory}: {e}") from e

    def _path(self, prefix: str, record_id: str) -> Path:
        return self.directory / f"{prefix}{record_id}.json"

    def _write(self, path: Path, record: CamelModel) -> None:
        try:
            path.write_text(record.model_dump_json(by_alias=True), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def _read(self, path: Path, model_cls):
        if not path.exists():
            return None
        try:
            return model_cls.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def _read_all(self, prefix: str, model_cls) -> list:
        return [self._read(p, model_cls) for p in sorted(self.directory.glob(f"{prefix}*.json"))]

    def save_model(self, model: DCFModel) -> str:
        model = _stamp(model)
        self._write(self._path(self.MODEL_PREFIX, model.id), model)
        logger.info(f"Saved model '{model.model_name}' ({model.id})")
        return model.id

    def load_model(self, model_id: str) -> Optional[DCFModel]:
        return self._read(self._path(self.MODEL_PREFIX, model_id), DCFModel)

    def list_models(self) -> List[DCFModel]:
        models = self._read_all(self.MODEL_PREFIX, DCFModel)
        return sorted(models, key=_sort_key_updated, reverse=True)

    def delete_model(self, model_id: str) -> None:
        self._path(self.MODEL_PREFIX, model_id).unlink(missing_ok=True)
        logger.info(f"Deleted model {model_id}")

    def save_scenario(self, scenario: DCFScenario) -> str:
        scenario = _stamp(scenario)
        self._write_scenario(scenario)
        logger.info(f"Saved scenario '{scenario.scenario_name}' ({scenario.id})")
        return scenario.id

    def _write_scenario(self, scenario: DCFScenario) -> None:
        self._write(self._path(self.SCENARIO_PREFIX, scenario.id), scenario)

    def load_scenario(self, scenario_id: str) -> Optional[DCFScenario]:
        return self._read(self._path(self.SCENARIO_PREFIX, scenario_id), DCFScenario)

    def list_scenarios(self, model_id: str) -> List[DCFScenario]:
        scenarios = [s for s in self._read_all(self.SCENARIO_PREFIX, DCFScenario) if s.model_id == model_id]
        return sorted(scenarios, key=lambda s: s.sort_order)

    def delete_scenario(self, scenario_id: str) -> None:
        self._path(self.SCENARIO_PREFIX, scenario_id).unlink(missing_ok=True)
        logger.info(f"Deleted scenario {scenario_id}")


# ============================================================================
# SQL (SQLAlchemy)
# ============================================================================


class SqlDataService(DataService):
    """JSON payloads in `dcf_models` / `dcf_scenarios` tables."""

    def __init__(self, url: str = DATABASE_URL):
        if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.engine = create_engine(url, pool_pre_ping=True)
            with self.engine.begin() as conn:
                conn.execute(text(
                    "CREATE TABLE IF NOT EXISTS dcf_models ("
                    " id VARCHAR(64) PRIMARY KEY,"
                    " model_name VARCHAR(255) NOT NULL,"
                    " updated_at VARCHAR(40) NOT NULL,"
                    " payload TEXT NOT NULL)"
                ))
                conn.execute(text(
                    "CREATE TABLE IF NOT EXISTS dcf_scenarios ("
                    " id VARCHAR(64) PRIMARY KEY,"
                    " model_id VARCHAR(64) NOT NULL,"
                    " sort_order INTEGER NOT NULL,"
                    " payload TEXT NOT NULL)"
                ))
        except SQLAlchemyError as e:
            raise StorageError(f"Database initialisation failed: {e}") from e
        logger.info(f"SQL storage ready at {self.engine.url.render_as_string(hide_password=True)}")

    def _fetch(self, statement: str, **params) -> list:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(statement), params).fetchall()
        except SQLAlchemyError as e:
            raise StorageError(f"Database read failed: {e}") from e

    def _run(self, statement: str, **params) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text(statement), params)
        except SQLAlchemyError as e:
            raise StorageError(f"Database write failed: {e}") from e

    def _upsert(self, table: str, record_id: str, columns: dict) -> None:
        names = ", ".join(["id"] + list(columns))
        values = ", ".join([":id"] + [f":{c}" for c in columns])
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DELETE FROM {table} WHERE id = :id"), {"id": record_id})
                conn.execute(text(f"INSERT INTO {table} ({names}) VALUES ({values})"), {"id": record_id, **columns})
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {table} row {record_id}: {e}") from e

    @staticmethod
    def _parse(payload: str, model_cls):
        try:
            return model_cls.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as e:
            raise StorageError(f"Corrupt {model_cls.__name__} payload: {e}") from e

    def save_model(self, model: DCFModel) -> str:
        model = _stamp(model)
        self._upsert("dcf_models", model.id, {
            "model_name": model.model_name,
            "updated_at": model.updated_at.isoformat(),
            "payload": model.model_dump_json(by_alias=True),
        })
        logger.info(f"Saved model '{model.model_name}' ({model.id})")
        return model.id

    def load_model(self, model_id: str) -> Optional[DCFModel]:
        rows = self._fetch("SELECT payload FROM dcf_models WHERE id = :id", id=model_id)
        return self._parse(rows[0][0], DCFModel) if rows else None

    def list_models(self) -> List[DCFModel]:
        rows = self._fetch("SELECT payload FROM dcf_models")
        models = [self._parse(row[0], DCFModel) for row in rows]
        return sorted(models, key=_sort_key_updated, reverse=True)

    def delete_model(self, model_id: str) -> None:
        self._run("DELETE FROM dcf_models WHERE id = :id", id=model_id)
        logger.info(f"Deleted model {model_id}")

    def save_scenario(self, scenario: DCFScenario) -> str:
        scenario = _stamp(scenario)
        self._write_scenario(scenario)
        logger.info(f"Saved scenario '{scenario.scenario_name}' ({scenario.id})")
        return scenario.id

    def _write_scenario(self, scenario: DCFScenario) -> None:
        self._upsert("dcf_scenarios", scenario.id, {
            "model_id": scenario.model_id,
            "sort_order": scenario.sort_order,
            "payload": scenario.model_dump_json(by_alias=True),
        })

    def load_scenario(self, scenario_id: str) -> Optional[DCFScenario]:
        rows = self._fetch("SELECT payload FROM dcf_scenarios WHERE id = :id", id=scenario_id)
        return self._parse(rows[0][0], DCFScenario) if rows else None

    def list_scenarios(self, model_id: str) -> List[DCFScenario]:
        rows = self._fetch(
            "SELECT payload FROM dcf_scenarios WHERE model_id = :model_id ORDER BY sort_order",
            model_id=model_id,
        )
        return [self._parse(row[0], DCFScenario) for row in rows]

    def delete_scenario(self, scenario_id: str) -> None:
        self._run("DELETE FROM dcf_scenarios WHERE id = :id", id=scenario_id)
        logger.info(f"Deleted scenario {scenario_id}")


def get_data_service(backend: Optional[str] = None) -> DataService:
    """
    Build the configured storage backend.

    Args:
        backend: "local" or "sql" (defaults to STORAGE_BACKEND)
    """
    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "local":
        return LocalFileDataService(STORAGE_DIR)
    if backend == "sql":
        return SqlDataService(DATABASE_URL)
    raise ValueError(f"Unknown storage backend: {backend!r} (expected 'local' or 'sql')")
