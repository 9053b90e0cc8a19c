from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from scrutineer.clock import DEFAULT_POLL_INTERVAL
from scrutineer.commands import DEFAULT_BUILD_COMMAND, DEFAULT_CLEAN_COMMAND


class ProbeSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    build: str = DEFAULT_BUILD_COMMAND
    clean: str = DEFAULT_CLEAN_COMMAND
    directory: str = "."
    targets: List[str] = []
    dependencies: List[str] = []
    report_phony: bool = False
    verbose: bool = False
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, ge=0)


class TargetReportDTO(BaseModel):
    target: str
    outcome: str
    dependencies: List[str] = []
    warnings: List[str] = []


class SessionSummaryDTO(BaseModel):
    targets: List[TargetReportDTO]
    phony_targets: List[str] = []
    mtime_resolution_ns: int
