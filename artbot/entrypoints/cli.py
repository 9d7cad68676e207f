from __future__ import annotations

import argparse
import json

from dotenv import load_dotenv

from artbot.evaluation.metrics import summarize_project
from artbot.memory.archive import ProjectArchive
from artbot.telemetry.logging import setup_logging
from artbot.utils.image_clients import build_image_client
from artbot.utils.llm_clients import build_llm_client
from artbot.utils.settings import load_config
from artbot.workflows.pipeline import ArtPipeline, build_system


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the multi-agent art creation pipeline.")
    parser.add_argument("title", help="Project title.")
    parser.add_argument("--description", default="", help="Creative brief.")
    parser.add_argument(
        "--requirement",
        action="append",
        default=[],
        help="Project requirement (repeatable).",
    )
    parser.add_argument("--env", default="base", help="Config environment (base, dev, deepseek, ...).")
    parser.add_argument("--config-dir", default="configs", help="Directory holding <env>.yaml files.")
    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.env, args.config_dir)
    setup_logging(config.logging.level)

    system = build_system(
        config,
        llm_client=build_llm_client(config.llm),
        image_client=build_image_client(config.image),
        archive=ProjectArchive(),
    )
    result = ArtPipeline(system).run(args.title, args.description or args.title, args.requirement)

    project = result.project
    if project is None:
        print("No project was created.")
        raise SystemExit(1)

    for task in project.completed_tasks:
        marker = " [fallback]" if task.is_fallback else ""
        print(f"\n[{task.type.value} / {task.strategy}]{marker}")
        print(json.dumps(task.result, indent=2, default=str))

    outcome = summarize_project(project)
    print(f"\nStatus: {project.status.value} (stage {project.stage.value})")
    if project.error:
        print(f"Error: {project.error}")
    if outcome.overall_score is not None:
        print(f"Overall score: {outcome.overall_score}/10")
    if result.stalled:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
