"""Frontmatter parsing, validation and conversion for rule files.

Rule files start with a ``---`` delimited block of ``key: value`` lines.
Values such as ``globs: *.ts`` are not valid YAML, so parsing is done in
two stages: a YAML parse first, then a line-by-line regex extractor when
YAML rejects the block. The extractor always runs as well, so the text
exactly as written stays available in ``Frontmatter.raw_values``.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import FilesystemError

logger = logging.getLogger(__name__)

DELIMITER = "---"
REQUIRED_FIELDS = ("description", "globs", "alwaysApply")
RULE_FILE_SUFFIX = ".mdc"
MARKDOWN_SUFFIX = ".md"

_LINE_PATTERN = re.compile(r"^([A-Za-z_][\w-]*)\s*:\s*(.*)$")


@dataclass
class Frontmatter:
    """Parsed frontmatter block."""

    fields: list[str]
    """Field names in the order they appear"""

    values: dict[str, str]
    """Field values as text"""

    structured: bool = True
    """False when the regex fallback produced the result"""

    raw_values: dict[str, str] = field(default_factory=dict)
    """Field values exactly as written on their lines"""

    body: str = ""
    """Content following the closing delimiter"""


@dataclass
class ValidationResult:
    """Validation outcome for one rule file."""

    path: Path
    valid: bool = True
    errors: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)


def _split(text: str) -> Optional[tuple[str, str]]:
    lines = [line.rstrip("\r") for line in text.split("\n")]
    if not lines or lines[0] != DELIMITER:
        return None
    for index in range(1, len(lines)):
        if lines[index] == DELIMITER:
            return "\n".join(lines[1:index]), "\n".join(lines[index + 1 :])
    return None


def extract_block(text: str) -> Optional[str]:
    """Return the text between the opening and closing ``---`` lines.

    Returns None if the first line is not ``---`` or the block is never
    closed.
    """
    parts = _split(text)
    return parts[0] if parts else None


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, list):
        return ",".join(_to_text(v) for v in value)
    return str(value)


def _parse_structured(block: str) -> Optional[Frontmatter]:
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.debug(f"YAML parse failed, falling back to line parser: {e}")
        return None
    if data is None:
        return Frontmatter(fields=[], values={})
    if not isinstance(data, dict):
        return None
    fields = [str(key) for key in data]
    values = {str(key): _to_text(value) for key, value in data.items()}
    return Frontmatter(fields=fields, values=values)


def _parse_lines(block: str) -> Frontmatter:
    fields: list[str] = []
    values: dict[str, str] = {}
    for line in block.split("\n"):
        match = _LINE_PATTERN.match(line.strip())
        if not match:
            continue
        key, value = match.group(1), match.group(2).strip()
        fields.append(key)
        values[key] = value
    return Frontmatter(fields=fields, values=values, structured=False)


def parse_frontmatter(text: str) -> Optional[Frontmatter]:
    """Parse the frontmatter block of a rule file.

    Args:
        text: Full file content

    Returns:
        Parsed frontmatter, or None when the file has no frontmatter block.
        Callers decide whether a missing block is an error.
    """
    parts = _split(text)
    if parts is None:
        return None
    block, body = parts

    lines = _parse_lines(block)
    parsed = _parse_structured(block) or lines
    parsed.raw_values = lines.values
    parsed.body = body
    return parsed


def validate_frontmatter(path: Path, text: str) -> ValidationResult:
    """Check a rule file's frontmatter.

    The block must contain exactly ``description``, ``globs`` and
    ``alwaysApply``, in that order, and ``alwaysApply`` must be ``true`` or
    ``false``.
    """
    result = ValidationResult(path=path)

    parsed = parse_frontmatter(text)
    if parsed is None:
        result.add_error("Missing or invalid frontmatter section")
        return result

    for name in REQUIRED_FIELDS:
        if name not in parsed.fields:
            result.add_error(f"Missing required field: {name}")

    if "alwaysApply" in parsed.fields:
        # YAML would read yes/on/True as booleans; only the literal text counts
        always_apply = parsed.raw_values.get(
            "alwaysApply", parsed.values["alwaysApply"]
        )
        if always_apply not in ("true", "false"):
            result.add_error(
                f"Field 'alwaysApply' must be 'true' or 'false', got: '{always_apply}'"
            )

    unexpected = [name for name in parsed.fields if name not in REQUIRED_FIELDS]
    if unexpected:
        result.add_error(f"Unexpected fields in frontmatter: {', '.join(unexpected)}")

    actual_order = tuple(name for name in parsed.fields if name in REQUIRED_FIELDS)
    if len(actual_order) == len(REQUIRED_FIELDS) and actual_order != REQUIRED_FIELDS:
        result.add_error(
            "Fields must be in order: description, globs, alwaysApply "
            f"(found: {', '.join(actual_order)})"
        )

    return result


def validate_file(path: Path) -> ValidationResult:
    """Read and validate a rule file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        result = ValidationResult(path=path)
        result.add_error(f"Failed to read file: {e}")
        return result
    return validate_frontmatter(path, text)


def find_rule_files(directory: Path, suffix: str = RULE_FILE_SUFFIX) -> list[Path]:
    """Recursively find rule files below ``directory``.

    Returns an empty list when the directory does not exist.
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob(f"*{suffix}") if p.is_file())


def is_manual_rule(parsed: Frontmatter) -> bool:
    """Return True for rules that are never applied automatically.

    Such rules have ``alwaysApply: false`` and no ``globs``; they carry no
    information in their frontmatter and can live as plain Markdown.
    """
    always_apply = parsed.raw_values.get(
        "alwaysApply", parsed.values.get("alwaysApply")
    )
    return always_apply == "false" and not parsed.values.get("globs")


def convert_rule_file(path: Path) -> Optional[Path]:
    """Rewrite a manual rule as a Markdown file without frontmatter.

    The ``.mdc`` file is replaced by a ``.md`` file next to it holding only
    the body. Files that are not manual rules, or have no frontmatter, are
    left alone.

    Args:
        path: Rule file to convert

    Returns:
        Path of the new Markdown file, or None if nothing was converted

    Raises:
        FilesystemError: If the file cannot be read, the Markdown file
            already exists, or writing/removing fails
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(f"Failed to read {path}: {e}") from e

    parsed = parse_frontmatter(text)
    if parsed is None:
        logger.debug(f"No frontmatter found in {path}")
        return None
    if not is_manual_rule(parsed):
        return None

    new_path = path.with_suffix(MARKDOWN_SUFFIX)
    if new_path.exists():
        raise FilesystemError(f"Refusing to overwrite existing {new_path}")

    try:
        new_path.write_text(parsed.body.strip() + "\n", encoding="utf-8")
        path.unlink()
    except OSError as e:
        raise FilesystemError(f"Failed to convert {path}: {e}") from e

    logger.debug(f"Converted {path} -> {new_path}")
    return new_path
