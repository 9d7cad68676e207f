from conftest import ARTWORK, FailingLLMClient, ScriptedLLMClient, StubImageClient, fenced

from artbot.agents.refiner import RefinerAgent
from artbot.schemas.project import Project, ProjectStage, Task
from artbot.tools.image_synthesis import ImageSynthesisTool


def run_refiner(llm, image_client=None):
    tools = [ImageSynthesisTool(image_client, width=512, height=512)] if image_client else []
    agent = RefinerAgent(llm, tools=tools)
    agent.initialize()
    project = Project(id="p1", title="Night Static", description="film grain night scene")
    task = Task.for_stage(ProjectStage.REFINEMENT, {"brief": project.brief.as_dict()})
    return agent.generate(task, project.brief, agent.select_strategy(project.brief))


def test_refined_artwork_gets_image_url():
    images = StubImageClient(url="https://images.test/night.png")
    result = run_refiner(ScriptedLLMClient(), images)

    artwork = result.records[0]
    assert artwork["image_url"] == "https://images.test/night.png"
    assert artwork["prompt"] == ARTWORK["prompt"]
    assert images.requests[0].prompt == ARTWORK["prompt"]
    assert images.requests[0].width == 512


def test_image_failure_leaves_url_empty():
    result = run_refiner(ScriptedLLMClient(), StubImageClient(fail=True))
    assert result.is_fallback is False
    assert result.records[0]["image_url"] is None


def test_missing_prompt_is_derived_from_title_and_description():
    artwork = {key: value for key, value in ARTWORK.items() if key != "prompt"}
    images = StubImageClient()
    result = run_refiner(ScriptedLLMClient({"Refiner agent": fenced(artwork)}), images)
    assert images.requests[0].prompt == f"{ARTWORK['title']}: {ARTWORK['description']}"
    assert result.records[0]["prompt"] == images.requests[0].prompt


def test_only_first_artwork_is_kept():
    second = dict(ARTWORK, title="Second")
    result = run_refiner(ScriptedLLMClient({"Refiner agent": fenced([ARTWORK, second])}))
    assert [r["title"] for r in result.records] == [ARTWORK["title"]]


def test_fallback_artwork_skips_image_synthesis():
    images = StubImageClient()
    result = run_refiner(FailingLLMClient(), images)
    assert result.is_fallback is True
    assert result.records[0]["title"] == "Fallback Artwork"
    assert images.requests == []


def test_without_image_tool_records_pass_through():
    result = run_refiner(ScriptedLLMClient())
    assert result.records[0]["image_url"] is None
