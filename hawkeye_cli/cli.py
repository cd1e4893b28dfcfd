"""CLI entry point: argparse and main()."""

from __future__ import annotations

import argparse
import sys

from hawkeye_cli.executor import execute_streaming, render_capture
from hawkeye_cli.sse import StreamError
from hawkeye_cli.state import (
    config, SessionState, init_config, save_user_config, validate_config,
)
from hawkeye_cli.ui import C, error, notice, print_recap


HELP_EPILOG = """\
Commands:
  ask <prompt>     Start (or continue) an investigation and stream it
  render [file]    Render a captured SSE stream (stdin when no file)

Examples:
  hawkeye --server https://hawkeye.example.com --token $TOKEN --project <uuid> --save
  hawkeye ask "Why did checkout latency spike at 14:00?"
  hawkeye ask --session <uuid> "Which pods restarted?"
  curl -N ... | hawkeye render
  hawkeye --debug render capture.sse
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hawkeye",
        description="hawkeye — stream AI investigations to the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )
    parser.add_argument("--profile", default="", help="config profile (default: main config)")
    parser.add_argument("--server", default="", help="API server URL")
    parser.add_argument("--token", default="", help="API bearer token")
    parser.add_argument("--org", default="", help="organization UUID")
    parser.add_argument("--project", default="", help="project UUID")
    parser.add_argument(
        "--save", action="store_true",
        help="persist --server/--token/--org/--project to the config file",
    )
    parser.add_argument("--debug", action="store_true", help="debug output on stderr")

    sub = parser.add_subparsers(dest="command")

    ask = sub.add_parser("ask", help="stream an investigation")
    ask.add_argument("prompt", nargs="+", help="question to investigate")
    ask.add_argument("-s", "--session", default="", help="continue an existing session")
    ask.add_argument(
        "-c", "--continue", dest="cont", action="store_true",
        help="continue the last session",
    )
    ask.add_argument(
        "--recap", action="store_true",
        help="re-render the final answer as formatted markdown at the end",
    )

    render = sub.add_parser("render", help="render a captured SSE stream")
    render.add_argument("file", nargs="?", default="-", help="SSE capture (default: stdin)")
    render.add_argument("--recap", action="store_true", help="re-render the final answer")
    return parser


def _apply_flags(args) -> dict:
    """Copy connection flags onto config. Returns the values that were set."""
    given = {
        "server": args.server,
        "token": args.token,
        "org_uuid": args.org,
        "project_uuid": args.project,
    }
    given = {k: v for k, v in given.items() if v}
    for key, value in given.items():
        setattr(config, key, value)
    return given


def _cmd_ask(args) -> int:
    problem = validate_config()
    if problem:
        error(problem)
        return 1

    session = args.session or (config.last_session if args.cont else "")
    state = SessionState(session)
    answer = execute_streaming(" ".join(args.prompt), state)
    if state.session_uuid and state.session_uuid != config.last_session:
        config.last_session = state.session_uuid
        save_user_config({"last_session": state.session_uuid}, config.profile)
        notice(f"session: {state.session_uuid}")
    if answer is None:
        return 1
    if args.recap:
        print_recap(answer)
    return 0


def _cmd_render(args) -> int:
    try:
        if args.file == "-":
            display = render_capture(sys.stdin.buffer)
        else:
            with open(args.file, "rb") as f:
                display = render_capture(f)
    except OSError as e:
        error(f"cannot read {args.file}: {e}")
        return 1
    except StreamError as e:
        error(str(e))
        return 1
    if args.recap:
        print_recap(display.final_answer)
    return 0


def main(argv: list[str] | None = None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    init_config(args.profile)
    config.debug = args.debug
    given = _apply_flags(args)

    if args.save:
        if not given:
            error("--save needs at least one of --server/--token/--org/--project")
            sys.exit(1)
        save_user_config(given, config.profile)
        notice(f"Saved {', '.join(sorted(given))}", C.GREEN)

    try:
        if args.command == "ask":
            code = _cmd_ask(args)
        elif args.command == "render":
            code = _cmd_render(args)
        else:
            if not args.save:
                parser.print_help()
            code = 0
    except KeyboardInterrupt:
        print()
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
