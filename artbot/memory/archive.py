from __future__ import annotations

import logging
from typing import Dict, List, Optional

from artbot.schemas.project import Project

logger = logging.getLogger(__name__)


class ProjectArchive:
    """In-memory sink for finished projects.

    Durable storage is a collaborator's concern; anything exposing ``save``
    can stand in for this class.
    """

    def __init__(self) -> None:
        self._projects: Dict[str, Project] = {}

    def reset(self) -> None:
        self._projects.clear()

    def save(self, project: Project) -> None:
        logger.info("Archiving project %s (%s)", project.id, project.status.value)
        self._projects[project.id] = project

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def all(self) -> List[Project]:
        return list(self._projects.values())
