"""Pydantic configuration models for the TSM exporter."""

from datetime import datetime
from typing import Callable, Dict, List, Optional
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import ParseError
from ..utils.parsing import load_timezone

DEFAULT_TIMEOUTS: Dict[str, float] = {
    "db": 10,
    "drives": 5,
    "events": 10,
    "libvolumes": 5,
    "log": 10,
    "occupancy": 10,
    "replicationview": 5,
    "status": 5,
    "stgpools": 10,
    "summary": 5,
    "volumes": 10,
    "volumeusage": 5,
}


def _validate_regex(v: Optional[str]) -> Optional[str]:
    if v:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression {v!r}: {e}")
    return v


def _validate_timezone(v: Optional[str]) -> Optional[str]:
    if v:
        try:
            load_timezone(v)
        except ParseError as e:
            raise ValueError(str(e))
    return v


class Target(BaseModel):
    """A TSM server queried through dsmadmc."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = ""
    servername: str = ""
    id: str = ""
    password: str = ""
    library_name: Optional[str] = None
    schedules: Optional[List[str]] = None
    replication_node_names: Optional[List[str]] = None
    collectors: Optional[List[str]] = None
    volumeusage_map: Optional[Dict[str, str]] = None
    summary_activities: Optional[List[str]] = None
    timezone: Optional[str] = None
    volumes_classname_exclude: Optional[str] = None

    @field_validator('volumes_classname_exclude')
    @classmethod
    def validate_classname_exclude(cls, v: Optional[str]) -> Optional[str]:
        """Validate the exclude pattern compiles."""
        return _validate_regex(v)

    @field_validator('volumeusage_map')
    @classmethod
    def validate_volumeusage_map(cls, v: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        """Validate every classification pattern compiles."""
        if v:
            for pattern in v.values():
                _validate_regex(pattern)
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Validate the zone name is known."""
        return _validate_timezone(v)


class ExporterConfig(BaseModel):
    """Root configuration model: target name -> target."""

    model_config = ConfigDict(extra="forbid")

    targets: Dict[str, Target] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def fill_target_names(cls, data):
        """Name each target after its key and default servername to it."""
        if not isinstance(data, dict):
            return data
        targets = data.get("targets") or {}
        filled = {}
        for key, target in targets.items():
            target = dict(target or {})
            target["name"] = key
            if not target.get("servername"):
                target["servername"] = key
            if not target.get("id"):
                raise ValueError(f"Target {key} must define 'id' value")
            if not target.get("password"):
                raise ValueError(f"Target {key} must define 'password' value")
            filled[key] = target
        return {**data, "targets": filled}


class CollectorOptions(BaseModel):
    """Process-wide collector settings from the command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    timeouts: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_TIMEOUTS))
    timezone: Optional[str] = None
    volumes_classname_exclude: Optional[str] = None
    clock: Callable[[], datetime] = datetime.now

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Validate the zone name is known."""
        return _validate_timezone(v)

    @field_validator('volumes_classname_exclude')
    @classmethod
    def validate_classname_exclude(cls, v: Optional[str]) -> Optional[str]:
        """Validate the exclude pattern compiles."""
        return _validate_regex(v)

    def timeout_for(self, collector: str) -> float:
        """Timeout in seconds for one collector's dsmadmc calls."""
        return self.timeouts.get(collector, DEFAULT_TIMEOUTS.get(collector, 10))
