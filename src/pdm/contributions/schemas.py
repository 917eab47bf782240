"""Contribution request/response models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ContributionType(str, Enum):
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class ContributionResponse(BaseModel):
    badges: list[dict]
