"""Command-line entrypoint for kql-assist."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from kql_assist import __version__

if TYPE_CHECKING:
    from kql_assist.config import Settings
    from kql_assist.validation import ValidationMode

logger = logging.getLogger(__name__)

# Base temperature for `fix` when no layer sets one.
REPAIR_TEMPERATURE = 0.1


class InputError(ValueError):
    """Raised when no usable query or description was provided."""


def read_input(
    words: list[str],
    file_path: str | None,
    stdin: TextIO,
) -> str:
    """Positional text first, then ``--file``, then non-interactive stdin."""
    if words:
        return " ".join(words).strip()

    if file_path:
        try:
            text = Path(file_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise InputError(f"reading file: {exc}") from exc
        if not text:
            raise InputError(f"file is empty: {file_path}")
        return text

    if stdin.isatty():
        raise InputError(
            "no input provided (use -f <file>, stdin, or pass text as argument)"
        )
    text = stdin.read().strip()
    if not text:
        raise InputError("empty input from stdin")
    return text


def _add_provider_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("provider")
    group.add_argument(
        "--provider",
        default=None,
        help="AI provider (ollama, instructlab, azure, openai).",
    )
    group.add_argument("--model", default=None, help="Model name.")
    group.add_argument(
        "--temperature",
        type=float,
        default=None,
        help="Base sampling temperature (0.0-1.0, default: 0.2; 0.1 for fix).",
    )
    group.add_argument("--ollama-endpoint", default=None, help="Ollama endpoint URL.")
    group.add_argument(
        "--instructlab-endpoint", default=None, help="InstructLab endpoint URL."
    )
    group.add_argument(
        "--azure-endpoint", default=None, help="Azure OpenAI endpoint URL."
    )
    group.add_argument(
        "--azure-deployment", default=None, help="Azure OpenAI deployment name."
    )
    group.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Overall timeout in seconds (default: 60).",
    )
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress for each attempt on stderr.",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Show raw provider responses on stderr.",
    )


def _add_context_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-t", "--table", default="", help="Target table name.")
    parser.add_argument(
        "-s",
        "--schema",
        default="",
        help="Table schema (comma-separated columns).",
    )


def _add_validation_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("validation")
    group.add_argument(
        "--no-validate", action="store_true", help="Skip validation entirely."
    )
    group.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when the query is still invalid after retries.",
    )
    group.add_argument(
        "--semantic",
        action="store_true",
        help="Validate with full semantic analysis instead of syntax only.",
    )
    group.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Retry attempts after a validation failure (default: 2).",
    )
    group.add_argument(
        "--preset",
        default=None,
        help="Preset: minimal, balanced, thorough, strict.",
    )
    group.add_argument(
        "--no-feedback",
        action="store_true",
        help="Disable all feedback; individual --feedback-* flags still apply.",
    )
    for name in ("errors", "hints", "examples", "progressive"):
        group.add_argument(
            f"--feedback-{name}",
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Include {name} feedback in retry prompts.",
        )
    group.add_argument(
        "--no-retry-temp-adjust",
        action="store_true",
        help="Keep the base temperature on every retry.",
    )
    group.add_argument(
        "--retry-temp-increment",
        type=float,
        default=None,
        help="Temperature increment per retry (default: 0.1).",
    )
    group.add_argument(
        "--retry-temp-max",
        type=float,
        default=None,
        help="Maximum temperature on retry (default: 0.5).",
    )


def _add_input_arguments(parser: argparse.ArgumentParser, noun: str) -> None:
    parser.add_argument("text", nargs="*", help=f"{noun.capitalize()} text.")
    parser.add_argument(
        "-f", "--file", default=None, help=f"Read the {noun} from a file."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kql-assist",
        description=(
            "Command-line toolkit that generates, repairs, and reviews Kusto "
            "Query Language (KQL) queries with an AI provider."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    config_parser = subparsers.add_parser(
        "config-check",
        help="Show the effective layered configuration.",
    )
    config_parser.add_argument("--preset", default=None, help="Preset to apply.")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate KQL from a natural language description.",
    )
    _add_input_arguments(generate_parser, "description")
    _add_context_arguments(generate_parser)
    _add_provider_arguments(generate_parser)
    _add_validation_arguments(generate_parser)

    fix_parser = subparsers.add_parser(
        "fix",
        help="Repair a KQL query that has syntax errors.",
    )
    _add_input_arguments(fix_parser, "query")
    _add_context_arguments(fix_parser)
    _add_provider_arguments(fix_parser)
    _add_validation_arguments(fix_parser)
    fix_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show original and suggested query on stderr without emitting it.",
    )

    lint_parser = subparsers.add_parser(
        "lint",
        help="Validate KQL files (or stdin) with the configured linter.",
    )
    lint_parser.add_argument("files", nargs="*", help="Files to lint; '-' is stdin.")
    lint_parser.add_argument(
        "--semantic",
        action="store_true",
        help="Enable semantic analysis (type checking, name resolution).",
    )
    lint_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    lint_parser.add_argument(
        "--quiet", action="store_true", help="Only print diagnostics."
    )

    explain_parser = subparsers.add_parser(
        "explain",
        help="Explain a KQL query in natural language.",
    )
    _add_input_arguments(explain_parser, "query")
    _add_provider_arguments(explain_parser)

    suggest_parser = subparsers.add_parser(
        "suggest",
        help="Get improvement suggestions for a KQL query.",
    )
    _add_input_arguments(suggest_parser, "query")
    _add_provider_arguments(suggest_parser)
    suggest_parser.add_argument(
        "--focus",
        choices=("performance", "readability", "correctness", "all"),
        default="all",
        help="Suggestion focus (default: all).",
    )
    return parser


def _settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "provider": args.provider,
        "model": args.model,
        "temperature": args.temperature,
        "ollama_endpoint": args.ollama_endpoint,
        "instructlab_endpoint": args.instructlab_endpoint,
        "azure_endpoint": args.azure_endpoint,
        "azure_deployment": args.azure_deployment,
        "timeout_seconds": args.timeout,
    }


def _validation_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "enabled": False if args.no_validate else None,
        "strict": True if args.strict else None,
        "retries": args.retries,
        "feedback": {
            "errors": args.feedback_errors,
            "hints": args.feedback_hints,
            "examples": args.feedback_examples,
            "progressive": args.feedback_progressive,
        },
        "temperature": {
            "adjust": False if args.no_retry_temp_adjust else None,
            "increment": args.retry_temp_increment,
            "max": args.retry_temp_max,
        },
    }


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if getattr(args, "debug", False):
        level = logging.DEBUG
    elif getattr(args, "verbose", False):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _validation_mode(args: argparse.Namespace) -> ValidationMode:
    from kql_assist.validation import ValidationMode

    return ValidationMode.SEMANTIC if args.semantic else ValidationMode.SYNTAX


def _run_with_retries(args: argparse.Namespace, *, repair: bool) -> int:
    from kql_assist.config import load_config_file, load_settings, load_validation_config
    from kql_assist.generation import (
        format_validation_error,
        format_validation_warning,
        generate_with_validation,
    )
    from kql_assist.llm import Deadline, create_provider
    from kql_assist.models import GenerationRequest
    from kql_assist.prompts import PromptBuilder, RepairPromptBuilder
    from kql_assist.validation import CommandValidator, parse_diagnostics

    text = read_input(args.text, args.file, sys.stdin)
    file_config = load_config_file()
    settings = load_settings(
        _settings_overrides(args),
        file_config=file_config,
        defaults={"temperature": REPAIR_TEMPERATURE} if repair else None,
    )
    validation = load_validation_config(
        _validation_overrides(args),
        preset=args.preset,
        no_feedback=args.no_feedback,
        file_config=file_config,
    )
    validator = CommandValidator(settings.lint_command, mode=_validation_mode(args))

    prompt_builder: PromptBuilder = PromptBuilder()
    if repair:
        original_errors = validator.validate("input", text)
        if not original_errors:
            if args.verbose:
                print("No syntax errors found in query.", file=sys.stderr)
            print(text)
            return 0
        if args.verbose:
            print("Found errors:", file=sys.stderr)
            for item in original_errors:
                print(f"  - {item}", file=sys.stderr)
        prompt_builder = RepairPromptBuilder(parse_diagnostics(original_errors))

    provider = create_provider(settings)
    if args.verbose:
        print(
            f"Using {provider.name} provider with model {provider.model}...",
            file=sys.stderr,
        )
        if args.table:
            print(f"Target table: {args.table}", file=sys.stderr)
        if validation.enabled:
            print(
                f"Validation: enabled (retries={validation.retries}, "
                f"strict={validation.strict})",
                file=sys.stderr,
            )
        else:
            print("Validation: disabled", file=sys.stderr)

    result = generate_with_validation(
        provider,
        validator,
        GenerationRequest(prompt=text, table=args.table, schema=args.schema),
        validation,
        base_temperature=settings.temperature,
        prompt_builder=prompt_builder,
        deadline=Deadline(settings.timeout_seconds),
        source_name="fixed.kql" if repair else "generated.kql",
        verbose=sys.stderr if args.verbose else None,
        debug=sys.stderr if args.debug else None,
    )

    if repair and args.dry_run:
        print("=== Original Query ===", file=sys.stderr)
        print(text, file=sys.stderr)
        print("\n=== Suggested Fix ===", file=sys.stderr)
        print(result.query, file=sys.stderr)
        print(file=sys.stderr)
        if result.valid:
            print("✓ Suggested fix is syntactically valid", file=sys.stderr)
        else:
            print(format_validation_warning(result), end="", file=sys.stderr)
        return 0

    if not result.valid:
        if validation.strict:
            subject = "fix" if repair else "query"
            print(format_validation_error(result, subject), end="", file=sys.stderr)
            if args.verbose:
                print(f"Last candidate:\n{result.query}", file=sys.stderr)
            return 1
        print(format_validation_warning(result), end="", file=sys.stderr)

    print(result.query)
    return 0


def _run_lint(args: argparse.Namespace) -> int:
    from kql_assist.config import load_settings
    from kql_assist.validation import CommandValidator

    settings = load_settings()
    validator = CommandValidator(settings.lint_command, mode=_validation_mode(args))

    sources = args.files or ["-"]
    records = []
    for source in sources:
        if source == "-":
            name, text = "stdin", sys.stdin.read()
        else:
            try:
                name, text = source, Path(source).read_text(encoding="utf-8")
            except OSError as exc:
                raise InputError(f"cannot open file {source}: {exc}") from exc
        for record in validator.records(text):
            records.append(record.model_copy(update={"file": name}))

    for record in records:
        if args.format == "json":
            print(json.dumps(record.model_dump()))
        else:
            print(
                f"{record.file}:{record.line}:{record.column}: "
                f"{record.severity}: {record.message}"
            )
    if args.format == "text" and not args.quiet and not records:
        print("No issues found.")

    return 1 if any(record.severity == "error" for record in records) else 0


def _analysis_context(query: str, settings: Settings) -> list[str] | None:
    from kql_assist.validation import CommandValidator, ValidatorError

    try:
        return CommandValidator(settings.lint_command).validate("input", query)
    except ValidatorError as exc:
        logger.warning("Skipping validator context: %s", exc)
        return None


def _run_analysis(args: argparse.Namespace) -> int:
    from kql_assist.config import load_settings
    from kql_assist.llm import Deadline, create_provider
    from kql_assist.prompts import build_explain_prompt, build_suggest_prompt
    from kql_assist.prompts.analysis import query_analysis

    query = read_input(args.text, args.file, sys.stdin)
    settings = load_settings(_settings_overrides(args))
    provider = create_provider(settings)

    if args.command == "explain":
        context = ""
        if args.verbose:
            diagnostics = _analysis_context(query, settings)
            if diagnostics:
                context = f"Note: Query has {len(diagnostics)} syntax issue(s)."
            elif diagnostics is not None:
                context = "Query syntax is valid."
        prompt = build_explain_prompt(query, context)
    else:
        diagnostics = _analysis_context(query, settings) or []
        prompt = build_suggest_prompt(
            query, query_analysis(query, diagnostics), args.focus
        )

    if args.verbose:
        print(
            f"Using {provider.name} provider with model {provider.model}...",
            file=sys.stderr,
        )

    deadline = Deadline(settings.timeout_seconds)
    print(provider.complete(prompt, settings.temperature, timeout=deadline.remaining()))
    return 0


def _run_config_check(args: argparse.Namespace) -> int:
    from kql_assist.config import config_file_path, load_settings, load_validation_config

    settings = load_settings()
    validation = load_validation_config(preset=args.preset)

    print("Configuration loaded successfully:")
    print(f"- config_file: {config_file_path()}")
    for key, value in settings.redacted().items():
        print(f"- {key}: {value}")
    print("Validation:")
    print(json.dumps(validation.model_dump(), indent=2, sort_keys=True))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args)

    try:
        from kql_assist.config import ConfigError
        from kql_assist.llm import LLMError
        from kql_assist.validation import ValidatorError
    except ModuleNotFoundError:
        print(
            "Runtime dependencies are missing. "
            "Install project dependencies first (pip install -e .).",
            file=sys.stderr,
        )
        return 2

    try:
        if args.command == "config-check":
            return _run_config_check(args)
        if args.command == "generate":
            return _run_with_retries(args, repair=False)
        if args.command == "fix":
            return _run_with_retries(args, repair=True)
        if args.command == "lint":
            return _run_lint(args)
        if args.command in ("explain", "suggest"):
            return _run_analysis(args)
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2
    except InputError as exc:
        print(f"Input error: {exc}", file=sys.stderr)
        return 2
    except ValidatorError as exc:
        print(f"Validation failed to run:\n{exc}", file=sys.stderr)
        return 1
    except LLMError as exc:
        print(f"Generation failed:\n{exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 1

    print(f"Command '{args.command}' is not implemented.", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
