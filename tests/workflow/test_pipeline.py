import httpx
import pytest

from conftest import CRITIQUE, DEFAULT_REPLIES, ScriptedLLMClient, StubImageClient, fenced

from artbot.agents.ideator import IdeationApproach
from artbot.memory.archive import ProjectArchive
from artbot.schemas.messages import AgentRole, AgentStatus
from artbot.schemas.project import ProjectStage, ProjectStatus, TaskType
from artbot.utils.image_clients import FallbackImageClient, ReplicateImageClient
from artbot.utils.settings import AppConfig, WorkflowConfig
from artbot.workflows.pipeline import ArtPipeline, build_system

TITLE = "Evolving Diffusion"
DESCRIPTION = "An artwork exploring diffusion-based generative art"
REQUIREMENTS = ["Balance abstract and recognizable forms", "Use a cinematic night palette"]


@pytest.fixture
def generous_llm() -> ScriptedLLMClient:
    return ScriptedLLMClient(dict(DEFAULT_REPLIES, **{"Critic agent": fenced(dict(CRITIQUE, overallScore=10))}))


def test_full_run_completes_all_stages(app_config, scripted_llm):
    archive = ProjectArchive()
    system = build_system(app_config, scripted_llm, StubImageClient(), archive=archive)

    result = ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS, project_id="p1")

    project = result.project
    assert result.completed and not result.stalled
    assert project.stage == ProjectStage.COMPLETED
    assert [t.type for t in project.completed_tasks] == list(TaskType)
    assert not any(t.is_fallback for t in project.completed_tasks)
    assert project.task_of(TaskType.REFINEMENT).result[0]["image_url"] == "https://images.test/1.png"
    assert archive.get("p1") is project
    assert len(scripted_llm.calls) == 4


def test_ideator_picks_conceptual_for_evolving_diffusion(app_config, scripted_llm):
    system = build_system(app_config, scripted_llm)
    project = ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS).project
    assert project.task_of(TaskType.IDEATION).strategy == IdeationApproach.CONCEPTUAL.value


def test_critique_rating_feeds_back_into_weights(app_config, generous_llm):
    system = build_system(app_config, generous_llm)
    ideator = system.agent(AgentRole.IDEATOR)
    before = ideator.strategy_table.weight(IdeationApproach.CONCEPTUAL)

    ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS)

    assert before == pytest.approx(0.8)
    assert ideator.strategy_table.weight(IdeationApproach.CONCEPTUAL) == pytest.approx(0.82)
    assert [m.action for m in system.transcript.by_action("feedback_acknowledged")] == [
        "feedback_acknowledged"
    ] * 4


def test_feedback_is_off_when_disabled(scripted_llm):
    config = AppConfig(workflow=WorkflowConfig(auto_feedback=False))
    system = build_system(config, scripted_llm)
    ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS)
    assert system.transcript.by_action("project_feedback") == []


def test_failing_llm_still_completes_with_fallbacks(app_config, failing_llm):
    system = build_system(app_config, failing_llm)

    result = ArtPipeline(system).run(TITLE, DESCRIPTION, [])

    assert result.completed
    assert all(t.is_fallback for t in result.project.completed_tasks)
    assert failing_llm.calls == 4
    # fallback critiques carry no rating to learn from
    assert system.transcript.by_action("project_feedback") == []


def test_empty_requirements_reach_the_ideator(app_config, scripted_llm):
    system = build_system(app_config, scripted_llm)
    ArtPipeline(system).run("Quiet Study", "", [])
    first_prompt = scripted_llm.calls[0][1].content
    assert "Requirements: (none)" in first_prompt
    assert system.transcript.by_action("task_completed")[0].from_role == "ideator"


def test_crashing_agent_stalls_the_project(app_config):
    llm = ScriptedLLMClient()
    system = build_system(app_config, llm)
    stylist = system.agent(AgentRole.STYLIST)

    def explode(*args, **kwargs):
        raise RuntimeError("stylist crashed")

    stylist.generate = explode
    result = ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS)

    assert result.stalled
    assert result.project.status == ProjectStatus.STALLED
    assert result.project.stage == ProjectStage.STYLING
    assert "stylist crashed" in result.project.error
    assert result.states["stylist"]["status"] == AgentStatus.ERROR.value


def test_stalled_project_resumes_after_reset(app_config):
    llm = ScriptedLLMClient()
    system = build_system(app_config, llm)
    pipeline = ArtPipeline(system)
    stylist = system.agent(AgentRole.STYLIST)
    original = stylist.generate

    def explode(*args, **kwargs):
        raise RuntimeError("stylist crashed")

    stylist.generate = explode
    project = pipeline.run(TITLE, DESCRIPTION, REQUIREMENTS, project_id="p1").project

    stylist.generate = original
    system.reset_agent(AgentRole.STYLIST)
    result = pipeline.resume("p1")

    assert result.project is project
    assert result.completed
    assert len(project.completed_tasks) == 4


def test_cancel_before_work_finishes(app_config):
    llm = ScriptedLLMClient()
    system = build_system(app_config, llm)
    pipeline = ArtPipeline(system)
    ideator = system.agent(AgentRole.IDEATOR)
    original = ideator.generate

    def cancel_mid_stage(task, project, strategy, cancel_token=None):
        pipeline.cancel(project.id)
        return original(task, project, strategy, cancel_token=cancel_token)

    ideator.generate = cancel_mid_stage
    result = pipeline.run(TITLE, DESCRIPTION, REQUIREMENTS, project_id="p1")

    assert result.project.status == ProjectStatus.CANCELLED
    assert result.project.completed_tasks == []
    assert len(llm.calls) == 1
    assert pipeline.completed_projects() == []


def test_second_project_reuses_learned_weights(app_config, generous_llm):
    system = build_system(app_config, generous_llm)
    pipeline = ArtPipeline(system)
    pipeline.run(TITLE, DESCRIPTION, REQUIREMENTS)
    second = pipeline.run("Second Light", "abstract concept study", [])

    assert second.completed
    assert second.project.task_of(TaskType.IDEATION).strategy == "conceptual"
    weight = system.agent(AgentRole.IDEATOR).strategy_table.weight(IdeationApproach.CONCEPTUAL)
    assert weight == pytest.approx(0.838)


def test_state_snapshots_cannot_alter_archived_projects(app_config, scripted_llm):
    archive = ProjectArchive()
    system = build_system(app_config, scripted_llm, archive=archive)
    ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS, project_id="p1")

    state = system.get_system_state()
    state["ideator"]["context"]["last_result"][0]["title"] = "TAMPERED"
    state["director"]["context"]["current_project"]["completed_tasks"][0]["result"][0]["title"] = "TAMPERED"

    archived = archive.get("p1").task_of(TaskType.IDEATION).result
    assert archived[0]["title"] == "Sediment of Noise"
    fresh = system.get_system_state()
    assert fresh["ideator"]["context"]["last_result"][0]["title"] == "Sediment of Noise"


def test_garbled_image_reply_falls_back_to_secondary(app_config, scripted_llm):
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>", headers={"Content-Type": "text/html"})

    secondary = StubImageClient(url="https://images.test/dalle.png")
    replicate = ReplicateImageClient(
        api_key="r8-test", model="owner/model", poll_interval=0, transport=httpx.MockTransport(handler)
    )
    system = build_system(app_config, scripted_llm, FallbackImageClient(replicate, secondary))

    result = ArtPipeline(system).run(TITLE, DESCRIPTION, REQUIREMENTS)

    assert result.completed
    assert result.project.task_of(TaskType.REFINEMENT).result[0]["image_url"] == "https://images.test/dalle.png"
    assert len(secondary.requests) == 1
