# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for evalgrid."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class EvalgridBaseModel(BaseModel):
    """Base model with shared config for evalgrid schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Base model for records that must not change after creation."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )
