"""
Wire models for coordinator responses.

Coordinator payloads use camelCase keys; models expose snake_case fields
and accept either spelling.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Job(BaseModel):
    """A pending job returned by listJobs."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Job id, used when posting the result")
    function: str = Field(..., description="Name of the tool the job targets")
    input: Any = Field(default=None, description="Untrusted tool input")


class MachineRegistration(BaseModel):
    """Response body of createMachine."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cluster_id: str | None = Field(default=None, alias="clusterId")


class JobStatus(BaseModel):
    """Response body of createJob and getJob."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = None
    status: str | None = None
    result: Any = None
    result_type: str | None = Field(default=None, alias="resultType")


class RemoteTool(BaseModel):
    """Entry returned by listTools."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str | None = None
    schema_: str | None = Field(default=None, alias="schema")
