"""Validator boundary and the external linter adapter."""

from __future__ import annotations

import json
import logging
import re
import shlex
import subprocess
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class ValidatorError(RuntimeError):
    """Raised when the validator itself cannot run."""


class ValidationMode(str, Enum):
    SYNTAX = "syntax"
    SEMANTIC = "semantic"


class Validator(ABC):
    """Checks query text and reports diagnostics; an empty list means valid."""

    @abstractmethod
    def validate(self, source_name: str, text: str) -> list[str]:
        """Return diagnostics rendered as ``"<source>:<line>:<col>: <message>"``."""


class LintRecord(BaseModel):
    """One JSON line emitted by ``kql lint --format json``."""

    model_config = ConfigDict(extra="ignore")

    file: str = ""
    line: int = 1
    column: int = 1
    severity: str = "error"
    message: str


# <file>:<line>:<col>: [<severity>:] <message>
_TEXT_LINE = re.compile(
    r"^(?P<file>[^:]+):(?P<line>\d+):(?P<col>\d+): "
    r"(?:(?P<severity>error|warning): )?(?P<message>.+)$"
)


def _parse_output_line(line: str) -> LintRecord | None:
    stripped = line.strip()
    if not stripped or stripped == "No issues found.":
        return None

    if stripped.startswith("{"):
        try:
            return LintRecord.model_validate(json.loads(stripped))
        except (json.JSONDecodeError, ValidationError):
            logger.debug("Unparseable lint JSON line: %s", stripped)

    match = _TEXT_LINE.match(stripped)
    if match:
        return LintRecord(
            file=match.group("file"),
            line=int(match.group("line")),
            column=int(match.group("col")),
            severity=match.group("severity") or "error",
            message=match.group("message"),
        )
    return LintRecord(message=stripped)


class CommandValidator(Validator):
    """Run an external KQL linter over stdin and collect its errors."""

    def __init__(
        self,
        command: str,
        mode: ValidationMode = ValidationMode.SYNTAX,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.argv = shlex.split(command)
        if not self.argv:
            raise ValidatorError("Validator command cannot be empty.")
        self.mode = mode
        self.timeout_seconds = timeout_seconds

    def _command(self) -> list[str]:
        argv = list(self.argv)
        if self.mode is ValidationMode.SEMANTIC:
            argv.append("--strict")
        argv.append("-")
        return argv

    def records(self, text: str) -> list[LintRecord]:
        """All lint records (errors and warnings) for ``text``."""
        argv = self._command()
        try:
            completed = subprocess.run(
                argv,
                input=text,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ValidatorError(
                f"Validator command not found: {argv[0]!r}. "
                "Set KQL_LINT_COMMAND to a KQL linter."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ValidatorError(
                f"Validator timed out after {self.timeout_seconds:g}s."
            ) from exc

        records = [
            record
            for record in map(_parse_output_line, completed.stdout.splitlines())
            if record is not None
        ]
        if completed.returncode != 0 and not any(
            r.severity == "error" for r in records
        ):
            detail = completed.stderr.strip() or f"exit status {completed.returncode}"
            if not records and completed.returncode > 1:
                raise ValidatorError(f"Validator failed: {detail}")
            records.append(LintRecord(message=detail))
        return records

    def validate(self, source_name: str, text: str) -> list[str]:
        diagnostics = [
            f"{source_name}:{record.line}:{record.column}: {record.message}"
            for record in self.records(text)
            if record.severity == "error"
        ]
        logger.debug("Validator reported %d error(s) for %s", len(diagnostics), source_name)
        return diagnostics
