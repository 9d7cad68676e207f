import pytest

from artbot.errors import ProjectStateError
from artbot.schemas.messages import AgentRole
from artbot.schemas.project import (
    STAGE_ORDER,
    Project,
    ProjectStage,
    ProjectStatus,
    Task,
    TaskType,
)


def make_project() -> Project:
    return Project(id="p1", title="Evolving Diffusion", description="d", requirements=["r1"])


def complete_current(project: Project) -> ProjectStage:
    task = Task.for_stage(project.stage, {})
    return project.complete_task(task)


def test_stage_order():
    assert [s.value for s in STAGE_ORDER] == ["planning", "styling", "refinement", "critique", "completed"]
    assert ProjectStage.PLANNING.next() == ProjectStage.STYLING
    with pytest.raises(ProjectStateError):
        ProjectStage.COMPLETED.next()


def test_stage_assignments():
    assert Task.for_stage(ProjectStage.PLANNING, {}).assigned_role == AgentRole.IDEATOR
    assert Task.for_stage(ProjectStage.CRITIQUE, {}).type == TaskType.CRITIQUE
    with pytest.raises(ProjectStateError):
        Task.for_stage(ProjectStage.COMPLETED, {})


def test_project_advances_one_stage_per_task():
    project = make_project()
    stages = [complete_current(project) for _ in range(4)]
    assert stages == list(STAGE_ORDER[1:])
    assert project.status == ProjectStatus.COMPLETED
    assert [t.type for t in project.completed_tasks] == list(TaskType)


def test_wrong_task_type_is_rejected():
    project = make_project()
    with pytest.raises(ProjectStateError):
        project.complete_task(Task.for_stage(ProjectStage.STYLING, {}))
    assert project.stage == ProjectStage.PLANNING
    assert project.completed_tasks == []


def test_completed_project_is_immutable():
    project = make_project()
    for _ in range(4):
        complete_current(project)
    with pytest.raises(ProjectStateError):
        project.mark_stalled("late")
    with pytest.raises(ProjectStateError):
        project.mark_cancelled()


def test_stalled_project_can_resume():
    project = make_project()
    complete_current(project)
    project.mark_stalled("stylist down")
    assert project.status == ProjectStatus.STALLED
    assert project.error == "stylist down"
    project.resume()
    assert project.status == ProjectStatus.IN_PROGRESS
    assert project.error is None
    assert project.stage == ProjectStage.STYLING


def test_only_stalled_projects_resume():
    with pytest.raises(ProjectStateError):
        make_project().resume()


def test_brief_is_a_read_only_view():
    project = make_project()
    brief = project.brief
    assert brief.requirements == ("r1",)
    assert "evolving diffusion" in brief.text()
    project.requirements.append("r2")
    assert brief.requirements == ("r1",)


def test_as_dict_is_serializable():
    project = make_project()
    complete_current(project)
    data = project.as_dict()
    assert data["stage"] == "styling"
    assert data["completed_tasks"][0]["type"] == "ideation"
    assert data["completed_tasks"][0]["assigned_role"] == "ideator"
