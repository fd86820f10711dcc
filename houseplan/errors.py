from __future__ import annotations


class HousePlanError(Exception):
    """Base class for errors raised by the plan engine."""


class ProjectFormatError(HousePlanError):
    """A project file could not be parsed; nothing was imported."""


class DuplicateIdError(HousePlanError):
    def __init__(self, entity_id: str):
        super().__init__(f"entity id already in use: {entity_id!r}")
        self.entity_id = entity_id
