"""CLI entrypoints for scoregate commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .checks import build_registry
from .clients import DEFAULT_API_URL, GitHubRepoClient, LocalRepoClient
from .clients.base import RepoClientFactory
from .config import ConfigError, github_token, load_policy
from .logging import configure_logging
from .manifests import ParseError
from .models import RepositoryHandle
from .pipeline import Gate
from .resolver import RepositoryResolver

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scoregate",
        description="Gate builds on the security posture of their dependencies.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Evaluate every dependency of a manifest against the policy.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument(
        "manifest",
        help="Path to the dependency lock file (go.sum, requirements.txt, package-lock.json).",
    )
    check_parser.add_argument(
        "-c",
        "--config",
        default="scoregate.yml",
        help="Policy file, or a directory containing scoregate.yml (defaults to ./scoregate.yml).",
    )
    check_parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Number of repositories evaluated concurrently (overrides the policy file).",
    )
    check_parser.add_argument(
        "--github-token",
        default=None,
        help="GitHub API token (defaults to $SCOREGATE_GITHUB_TOKEN or $GITHUB_TOKEN).",
    )
    check_parser.add_argument(
        "--github-api-url",
        default=DEFAULT_API_URL,
        help="GitHub REST API base URL.",
    )
    check_parser.add_argument(
        "--local-repo",
        default=None,
        help="Evaluate every resolved dependency against this local checkout (debugging aid).",
    )
    check_parser.add_argument(
        "--log-file",
        default=None,
        help="Also write debug logs to this file.",
    )

    list_parser = subparsers.add_parser(
        "list-checks",
        help="List the registered checks.",
    )
    _add_verbose_option(list_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for scoregate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if getattr(args, "log_file", None) else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    if args.command == "list-checks":
        try:
            registry = build_registry()
        except ConfigError as exc:
            parser.exit(EXIT_FATAL, f"{exc}\n")
        for name in registry.names():
            print(name)
        return

    if args.command != "check":  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_FATAL, "Unknown command\n")

    if args.max_workers is not None and args.max_workers < 1:
        parser.exit(EXIT_FATAL, "--max-workers must be at least 1\n")

    try:
        policy = load_policy(Path(args.config))
        registry = build_registry()
        gate = Gate(
            policy,
            registry,
            RepositoryResolver(),
            _client_factory(args),
            max_workers=args.max_workers,
        )
        report = gate.run(args.manifest)
    except (ConfigError, ParseError) as exc:
        parser.exit(EXIT_FATAL, f"{exc}\n")
    except KeyboardInterrupt:
        parser.exit(EXIT_FATAL, "scoregate check aborted\n")

    if report.violations:
        print("Checks for dependencies failed:")
        for violation in report.violations:
            print(violation)
        parser.exit(EXIT_VIOLATIONS)

    print(f"All {len(report.results)} evaluated dependencies satisfy the policy")


def _client_factory(args: argparse.Namespace) -> RepoClientFactory:
    if args.local_repo:
        local_root = Path(args.local_repo)

        def _local(repository: RepositoryHandle) -> LocalRepoClient:
            return LocalRepoClient(local_root)

        return _local

    token = args.github_token or github_token()
    api_url = args.github_api_url

    def _github(repository: RepositoryHandle) -> GitHubRepoClient:
        return GitHubRepoClient(repository, token=token, api_url=api_url)

    return _github


if __name__ == "__main__":
    main(sys.argv[1:])
