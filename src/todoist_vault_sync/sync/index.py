"""In-memory id lookups for projects and sections.

Projects and sections are not part of the task delta, so they are fetched
in full every cycle and indexed here before any task is applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .models import Project, Section, Task


@dataclass(frozen=True)
class EntityIndex:
    """Project and section lookups keyed by id."""

    projects: dict[str, Project] = field(default_factory=dict)
    sections: dict[str, Section] = field(default_factory=dict)

    def project(self, project_id: str | None) -> Project | None:
        if project_id is None:
            return None
        return self.projects.get(project_id)

    def section(self, section_id: str | None) -> Section | None:
        if section_id is None:
            return None
        return self.sections.get(section_id)

    def resolve(self, task: Task) -> tuple[Project | None, Section | None]:
        """Return the task's project and section, ``None`` when unknown."""
        return self.project(task.project_id), self.section(task.section_id)


def build_index(
    projects: Iterable[Project], sections: Iterable[Section]
) -> EntityIndex:
    """Index *projects* and *sections* by id.  Later duplicates win."""
    return EntityIndex(
        projects={p.id: p for p in projects},
        sections={s.id: s for s in sections},
    )
