"""CLI entry point for line-hooks."""

from __future__ import annotations

import argparse
import sys

from line_hooks.config import AppConfig, load_config, validate_config
from line_hooks.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="line-hooks",
        description="LINE webhook service that answers messages and images with AI",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("start", "Start the webhook server"),
        ("config-check", "Validate configuration"),
        ("model-info", "Show AI backend and model"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "model-info":
        _model_info(args.config, args.env)
    elif args.command == "start":
        _run(args.config, args.env)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load_or_exit(config_path, env_path)
    print(f"Configuration valid: {config_path}")
    print(f"  Environment : {config.server.environment}")
    print(f"  Listen      : {config.server.host}:{config.server.port}")
    print(f"  CORS origin : {config.server.cors_origin}")
    print(f"  Dedupe      : {config.dispatch.dedupe_redeliveries}")
    limit = config.dispatch.max_concurrent_workflows
    print(f"  Concurrency : {limit if limit else 'unbounded'}")
    for warning in validate_config(config):
        print(f"  Warning: {warning}")


def _model_info(config_path: str, env_path: str) -> None:
    """Show AI backend information."""
    config = _load_or_exit(config_path, env_path)
    print("AI Model Configuration")
    print("=" * 50)
    print(f"  Backend : {config.ai.backend}")
    print(f"  Model   : {config.ai.model}")
    print(f"  Persona : {config.ai.persona_name}")
    print()


def _run(config_path: str, env_path: str) -> None:
    """Load config, build the app and serve it until interrupted."""
    import uvicorn

    from line_hooks.app import LineHooksApp

    config = _load_or_exit(config_path, env_path)
    setup_logging(config.log_level, json_output=config.log_json)

    app = LineHooksApp(config)
    uvicorn.run(
        app.api,
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
