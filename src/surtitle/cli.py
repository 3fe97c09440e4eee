"""
CLI entry point for surtitle

  surtitle serve --port 8765 --static-dir client/dist
  surtitle segment script.txt --output lines.json
  surtitle segment script.txt --fallback-only
"""
import argparse
import json
import sys
from pathlib import Path

from surtitle.config.settings import AppConfig, get_openai_key, load_env_file
from surtitle.errors import SurtitleError
from surtitle.utils.logger import error, info, set_log_level, success


def serve(args) -> None:
    """启动 Web 服务（uvicorn）。"""
    import uvicorn

    from surtitle.web.server import create_app

    config = AppConfig()
    if args.static_dir:
        config.static_dir = args.static_dir
    if config.access_code:
        info("Control access code is enabled")

    app = create_app(config)
    info(f"Serving on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)


def segment(args) -> int:
    """对本地剧本文件执行分段，输出 JSON 行列表。"""
    from surtitle.pipeline.ingest import ingest_script

    script_path = Path(args.script)
    if not script_path.is_file():
        error(f"Script file not found: {script_path}")
        return 1

    config = AppConfig()
    segment_fn = None
    if not args.fallback_only:
        api_key = get_openai_key()
        if not api_key:
            error("OPENAI_API_KEY is not set (use --fallback-only to skip the text service)")
            return 1
        from surtitle.web.api.script import build_segment_fn
        segment_fn = build_segment_fn(api_key, config)

    try:
        result = ingest_script(script_path.read_bytes(), segment_fn=segment_fn, config=config)
    except SurtitleError as e:
        error(f"Segmentation failed: {e}")
        return 1

    if result.warning:
        info(result.warning)

    payload = json.dumps([line.to_dict() for line in result.lines], ensure_ascii=False, indent=2)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload + "\n", encoding="utf-8")
        success(f"Wrote {len(result.lines)} lines to {output_path}")
    else:
        print(payload)
    return 0


# ── 主入口 ──────────────────────────────────────────────────

def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Live theater surtitles: script segmentation and synchronized sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  surtitle serve --port 8765 --static-dir client/dist   # Web server
  surtitle segment script.txt --output lines.json       # Segment with the text service
  surtitle segment script.txt --fallback-only           # Deterministic split only
        """
    )

    parser.add_argument(
        "--log-level", type=str, default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    serve_parser = subparsers.add_parser("serve", help="Run the web server")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8765, help="Bind port (default: 8765)")
    serve_parser.add_argument("--static-dir", type=str, help="Frontend build directory to serve (optional)")

    segment_parser = subparsers.add_parser("segment", help="Segment a script file into subtitle lines")
    segment_parser.add_argument("script", type=str, help="Script text file")
    segment_parser.add_argument("--output", "-o", type=str, help="Write JSON to this file instead of stdout")
    segment_parser.add_argument(
        "--fallback-only", action="store_true",
        help="Skip the text service and use deterministic segmentation",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    load_env_file()
    set_log_level(args.log_level)

    if args.command == "serve":
        serve(args)
    elif args.command == "segment":
        sys.exit(segment(args))


if __name__ == "__main__":
    main()
