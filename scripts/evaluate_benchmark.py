from __future__ import annotations

import argparse

from dotenv import load_dotenv

from artbot.evaluation.metrics import completion_rate, fallback_rate, summarize_project
from artbot.telemetry.logging import setup_logging
from artbot.utils.image_clients import build_image_client
from artbot.utils.llm_clients import build_llm_client
from artbot.utils.settings import load_config
from artbot.workflows.pipeline import ArtPipeline, build_system

BRIEFS = [
    ("Evolving Diffusion", "diffusion-based generative art", ["Balance abstract and recognizable forms"]),
    ("Harbor Nocturne", "a story of a night ferry crossing", ["Cinematic lighting", "Muted palette"]),
    ("Inherited Patterns", "textile traditions of a coastal town", []),
]


def main():
    parser = argparse.ArgumentParser(description="Run a fixed set of briefs and report pipeline health.")
    parser.add_argument("--env", default="dev")
    parser.add_argument("--config-dir", default="configs")
    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.env, args.config_dir)
    setup_logging(config.logging.level)
    # one system for every brief, so weights learned early shape later briefs
    pipeline = ArtPipeline(
        build_system(config, build_llm_client(config.llm), build_image_client(config.image))
    )

    outcomes = []
    for title, description, requirements in BRIEFS:
        result = pipeline.run(title, description, requirements)
        if result.project is None:
            continue
        outcome = summarize_project(result.project)
        outcomes.append(outcome)
        print(f"{title}: {result.project.status.value}, score={outcome.overall_score}")

    print(f"Completion rate: {completion_rate(outcomes):.2%}")
    print(f"Fallback rate: {fallback_rate(outcomes):.2%}")


if __name__ == "__main__":
    main()
