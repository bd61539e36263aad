import argparse
import asyncio
import os
import sys

from chapterclips.config import MODEL_DEFAULTS, load_config
from chapterclips.pipeline import run_pipelines


def _exit_with_error(message: str, code: int = 1) -> None:
    print(message)
    raise SystemExit(code)


def _resolve_provider(args: argparse.Namespace, configured: str | None) -> str | None:
    if args.openai:
        return "openai"
    if args.gemini:
        return "gemini"
    if args.ollama:
        return "ollama"
    return configured


def _print_results(videos: list[str], results: list) -> int:
    """Print the per-video summary; return how many videos failed."""
    print("\n" + "=" * 50)
    print("RESULTS:")
    print("=" * 50)
    failures = 0
    for video, result in zip(videos, results):
        if isinstance(result, BaseException):
            failures += 1
            print(f"  x {video}")
            print(f"    -> {result}")
            continue
        print(f"  + {video} ({len(result)} clips)")
        for url in result:
            print(f"    -> {url}")
    return failures


def main():
    parser = argparse.ArgumentParser(
        description="Chapter Clips - square social clips from long-form video"
    )

    ai_group = parser.add_mutually_exclusive_group()
    ai_group.add_argument("-o", "--openai", action="store_true", help="Use OpenAI")
    ai_group.add_argument("-g", "--gemini", action="store_true", help="Use Google Gemini")
    ai_group.add_argument("-l", "--ollama", action="store_true", help="Use Ollama (local)")

    parser.add_argument("user_id", help="Owner of the uploaded video; namespaces every object key")
    parser.add_argument("videos", nargs="+", help="Path(s) to local video files")
    parser.add_argument("-d", "--scratch-dir", default=None, help="Working directory for clips")
    parser.add_argument("--size", type=int, default=None, help="Square output size in pixels")
    parser.add_argument("--model", default=None, help="Override AI model name")
    parser.add_argument("--config", default=None, help="Path to config TOML file")

    args = parser.parse_args()

    if not args.user_id.strip():
        _exit_with_error("userId is required")

    cfg = load_config(args.config)

    # CLI flag > config > default
    cfg.scratch_dir = args.scratch_dir or cfg.scratch_dir
    cfg.square_size = args.size or cfg.square_size

    provider = _resolve_provider(args, cfg.provider)
    if not provider:
        _exit_with_error(
            "No AI provider specified. Use -o/--openai, -g/--gemini, -l/--ollama, "
            "or set provider in config.toml"
        )
    if provider != cfg.provider:
        cfg.model = None
    cfg.provider = provider
    cfg.model = args.model or cfg.model or MODEL_DEFAULTS.get(provider)

    missing = [video for video in args.videos if not os.path.isfile(video)]
    if missing:
        _exit_with_error(f"Video not found: {', '.join(missing)}")

    results = asyncio.run(run_pipelines(args.user_id, args.videos, cfg))
    failures = _print_results(args.videos, results)
    if failures:
        sys.exit(1)
