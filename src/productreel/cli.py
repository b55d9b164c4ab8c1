from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .orchestrator import PipelineConfig, PipelineOrchestrator
from .storyboard.model import AudioMood
from .storyboard.normalizer import ValidationError
from .storyboard.planner import PlanningError
from .timeline.model import TempoData

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn a product landing page into a beat-synced launch video render plan."
    )
    parser.add_argument("url", nargs="?", help="URL of the product landing page")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data/runs"),
        help="Base directory for per-product outputs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional path to pipeline configuration JSON/YAML",
    )
    parser.add_argument(
        "--mood",
        choices=[mood.value for mood in AudioMood],
        help="Force the music mood instead of the planner's choice",
    )
    parser.add_argument("--skip-music", action="store_true", help="Do not generate a music track")
    parser.add_argument("--skip-narration", action="store_true", help="Do not synthesize narration")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan and compose without calling the music or voice services",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete existing artifacts for this URL before regenerating",
    )
    parser.add_argument(
        "--storyboard",
        type=Path,
        help="Compose an existing storyboard JSON instead of planning from a URL",
    )
    parser.add_argument(
        "--tempo",
        type=Path,
        help="Tempo JSON ({bpm, beatTimesMs}) to use with --storyboard",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _load_config(path: Optional[Path]) -> PipelineConfig:
    return PipelineConfig.from_file(path) if path else PipelineConfig()


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = _load_config(args.config)

    if args.storyboard:
        # Engine-only run: no remote collaborators are needed.
        offline = config.model_copy(update={"llm_provider": "echo", "use_music": False, "use_narration": False})
        orchestrator = PipelineOrchestrator.default(offline)
        raw = json.loads(args.storyboard.read_text(encoding="utf-8"))
        tempo = None
        if args.tempo:
            tempo = TempoData.model_validate_json(args.tempo.read_text(encoding="utf-8"))
        try:
            bundle = orchestrator.render_storyboard(raw, args.output_dir, tempo=tempo, mood_override=args.mood)
        except ValidationError as exc:
            logger.error("Storyboard rejected: %s", exc)
            return 1
    else:
        if not args.url:
            parser.error("Either a URL or --storyboard must be provided")
        if args.tempo:
            parser.error("--tempo can only be used with --storyboard")
        orchestrator = PipelineOrchestrator.default(config)
        try:
            bundle = orchestrator.run(
                args.url,
                args.output_dir,
                mood_override=args.mood,
                dry_run=args.dry_run,
                skip_music=args.skip_music,
                skip_narration=args.skip_narration,
                cleanup=args.cleanup,
            )
        except (ValidationError, PlanningError) as exc:
            logger.error("Storyboard planning failed: %s", exc)
            return 1

    print(f"Wrote render plan to {bundle.render_plan}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
