import argparse
import json
import os
from typing import Optional, Sequence

from dotenv import load_dotenv

from .core.config import CascadeConfig
from .core.orchestrator import CascadeOrchestrator
from .core.types import ChatMessage, Conversation
from .guidelines import DEFAULT_GUIDELINES, GuidelineMatcher, GuidelineStore
from .tools import ToolRegistry


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run guideline matching + cascade orchestration from CLI")
    parser.add_argument("--message", required=True, help="User message to process")
    parser.add_argument("--session-id", default="cli")
    parser.add_argument("--threshold", type=float, default=None)
    return parser


def apply_cli_overrides(config: CascadeConfig, args: argparse.Namespace) -> CascadeConfig:
    if args.threshold is not None:
        config = config.model_copy(update={"match_threshold": args.threshold})
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not os.getenv("OPENAI_API_KEY"):
        print("startup_error=OPENAI_API_KEY is not set")
        return 2

    config = apply_cli_overrides(CascadeConfig.from_env(), args)
    matcher = GuidelineMatcher(config, GuidelineStore(DEFAULT_GUIDELINES))
    orchestrator = CascadeOrchestrator.build(config, ToolRegistry())

    messages = [ChatMessage(role="user", content=args.message)]
    matches = matcher.match(Conversation(session_id=args.session_id, messages=messages))
    result = orchestrator.execute(args.message, messages, matches)

    print(f"matched_guidelines={[match.guideline.id for match in matches]}")
    print(f"success={result.success}")
    print(f"final_state={result.trace.get('final_state')}")
    if result.error:
        print(f"error={result.error}")
    print("response:")
    print(result.response)
    print("trace:")
    print(json.dumps(result.trace, indent=2, sort_keys=True, default=str))
    print("tool_executions:")
    print(json.dumps(CascadeOrchestrator.collect_tool_executions(result.metadata.worker_results), indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
