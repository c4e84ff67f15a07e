#!filepath: autoperf/config/engine_config.py
from typing import List, Optional

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    gatherers: List[str] = Field(default_factory=list)
    extensions: List[str] = Field(default_factory=list)
    run_by_batch: bool = False
    # append new Results in chunks of N (None -> one append per action)
    batch_update_buffer: Optional[int] = Field(default=None, ge=1)
    # leaf timers (timeline report) and result counters
    instrument: bool = True
