"""Color King CLI entrypoints."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from .app import build_app
from .config import PROVIDER_NAMES, AppConfig
from .errors import ColorKingError
from .steps import Step
from .utils import load_dotenv
from .views import alert_for, choose_drawing, choose_outline, print_selected, submit_description, submit_print_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="color-king", description="Coloring page wizard")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the wizard HTTP server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--state-dir", dest="state_dir")
    serve.add_argument("--provider", choices=PROVIDER_NAMES)

    run = sub.add_parser("run", help="One-shot wizard: prompt to printable PDF")
    run.add_argument("--prompt", required=True)
    run.add_argument("--drawing", default="1", help="Drawing option id to pick")
    run.add_argument("--outline", default="1", help="Outline option id to pick")
    run.add_argument("--style", default="simple")
    run.add_argument("--page-size", dest="page_size", default="A4")
    run.add_argument("--thickness", default="medium")
    run.add_argument("--color", default="black")
    run.add_argument("--copies", type=int, default=1)
    run.add_argument("--provider", choices=PROVIDER_NAMES)
    run.add_argument("--credential", help="Save this provider credential before generating")
    run.add_argument("--state-dir", dest="state_dir")
    run.add_argument("--out", help="Directory for the print PDF")

    return parser


def _config_from_args(args: argparse.Namespace) -> AppConfig:
    config = AppConfig.from_env()
    if getattr(args, "provider", None):
        config = replace(config, provider=args.provider)
    if getattr(args, "state_dir", None):
        config = replace(config, state_dir=Path(args.state_dir).expanduser())
    return config


def _handle_serve(args: argparse.Namespace) -> int:
    from .server import serve

    app = build_app(_config_from_args(args))
    serve(app, host=args.host, port=args.port)
    return 0


def _handle_run(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    app = build_app(config)
    store = app.store
    if args.credential:
        store.save_provider_settings(args.credential)
    mode = "provider" if store.session.provider_enabled else "mock"
    print(f"Generating drawings for {args.prompt!r} ({config.provider}, {mode})")
    try:
        step = submit_description(store, args.prompt)
        for option in store.session.drawing_options:
            print(f"  drawing {option.id}: {option.url}")
        if step is Step.CHOOSE_DRAWING:
            step = choose_drawing(store, args.drawing, args.style)
        for option in store.session.outline_options:
            print(f"  outline {option.id}: {option.url}")
        if step is Step.CHOOSE_OUTLINE:
            step = choose_outline(store, args.outline)
        if step is Step.PRINT_SETTINGS:
            settings = {
                "page_size": args.page_size,
                "outline_thickness": args.thickness,
                "outline_color": args.color,
                "copies": args.copies,
            }
            step = submit_print_settings(store, settings)
        if step is not Step.PREVIEW:
            print(f"Wizard stopped at {step.route}")
            return 1
        out_dir = Path(args.out) if args.out else config.print_dir
        path = print_selected(store, out_dir)
    except ColorKingError as exc:
        print(f"Generation failed ({exc.kind}, {alert_for(exc)}): {exc}")
        return 1
    print(f"Print job written to {path}")
    return 0


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "serve":
        raise SystemExit(_handle_serve(args))
    if args.command == "run":
        raise SystemExit(_handle_run(args))
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
