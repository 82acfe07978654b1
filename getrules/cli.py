"""CLI interface for getrules."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .api import GitHubContentsClient
from .config import config
from .exceptions import ConfigError, FilesystemError, TransportError
from .frontmatter import (
    RULE_FILE_SUFFIX,
    convert_rule_file,
    find_rule_files,
    validate_file,
)
from .output import OutputFormatter
from .sync import SyncStats, TreeSynchronizer

logger = logging.getLogger(__name__)

GENERATED_RULES_DIR = "cursor-generated-rules"


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__, prog_name="getrules")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """GetRules - Mirror rule files from a GitHub repository."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("getrules").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _run_sync(
    synchronizer: TreeSynchronizer,
    root_ref: str,
    destination: Path,
    out: OutputFormatter,
    show_progress: bool,
) -> SyncStats:
    """Run the synchronizer, with a spinner when progress is shown."""
    if not show_progress:
        return synchronizer.sync(root_ref, destination)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=out.console,
        transient=True,
    ) as progress:
        task = progress.add_task("Fetching rules...", total=None)
        synchronizer.on_item = lambda item_path: progress.update(
            task, description=f"Processing {item_path}"
        )
        return synchronizer.sync(root_ref, destination)


def _display_summary(stats: SyncStats, out: OutputFormatter) -> None:
    out.print("")
    out.success("Rules update process finished.")
    out.info(
        f"Downloaded: {stats.downloaded}, moved to temp: {stats.displaced}, "
        f"skipped: {stats.skipped}, errors: {stats.errors}"
    )
    if stats.failures:
        out.warning(f"{stats.errors} item(s) failed. Re-run to retry them:")
        for failure in stats.failures:
            out.info(f"  - {failure.path}: {failure.message}")


@main.command()
@click.argument("repo", required=False)
@click.option(
    "--dest",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Local destination directory (default: ./<remote path>)",
)
@click.option(
    "--path",
    "-p",
    "remote_path",
    default=None,
    help="Directory inside the repository to mirror (default: .cursor/rules)",
)
@click.option(
    "--ext",
    "-e",
    "suffixes",
    multiple=True,
    help="Only download files with this suffix (repeatable, default: .mdc)",
)
@click.option("--all-files", is_flag=True, help="Download files of any type")
@click.option("--no-progress", is_flag=True, help="Disable the progress spinner")
@click.pass_context
def pull(
    ctx: Any,
    repo: Optional[str],
    dest: Optional[Path],
    remote_path: Optional[str],
    suffixes: tuple[str, ...],
    all_files: bool,
    no_progress: bool,
) -> None:
    """Download rules from a GitHub repository.

    REPO: Optional repository in owner/repo form. An invalid value is
    ignored and the default repository is used instead.

    Existing local files are never overwritten: each one is moved to the
    system temp directory before the new version is downloaded.

    Examples:
        getrules pull                          # Default repository
        getrules pull myorg/my-rules           # Custom repository
        getrules pull -p docs -d ./docs --all-files
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        coordinate, used_fallback = config.resolve_repo(repo)
        rules_path = remote_path or config.rules_path
        include = None if all_files else (suffixes or config.suffixes or None)
        client = GitHubContentsClient()
    except ConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    if used_fallback:
        out.warning(f"Ignoring invalid argument '{repo}'. Expected format: org/repo")
    elif repo:
        out.info(f"Using custom repo: {coordinate}")

    destination = (dest or Path(rules_path)).absolute()
    out.info(f"Attempting to install rules to {destination}")

    synchronizer = TreeSynchronizer(client, out, include_suffixes=include)
    show_progress = not (no_progress or out.quiet or out.json_output)

    try:
        with client:
            out.info(f"Fetching rules from GitHub ({coordinate})...")
            stats = _run_sync(
                synchronizer,
                client.contents_url(coordinate, rules_path),
                destination,
                out,
                show_progress,
            )
    except KeyboardInterrupt:
        out.warning("Download cancelled by user")
        ctx.exit(130)
    except (FilesystemError, TransportError) as e:
        out.error(f"An error occurred during the rules download process: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            {
                "repo": str(coordinate),
                "destination": str(destination),
                **stats.to_dict(),
            }
        )
    else:
        _display_summary(stats, out)


@main.command()
@click.argument(
    "directories", nargs=-1, type=click.Path(file_okay=False, path_type=Path)
)
@click.pass_context
def validate(ctx: Any, directories: tuple[Path, ...]) -> None:
    """Validate the frontmatter of rule files.

    DIRECTORIES: Directories to search for .mdc files
    (default: .cursor/rules and cursor-generated-rules)

    Every rule file must start with a frontmatter block holding exactly
    description, globs and alwaysApply, in that order.
    """
    out: OutputFormatter = ctx.obj["out"]
    search_dirs = directories or (Path(config.rules_path), Path(GENERATED_RULES_DIR))

    files: list[Path] = []
    for directory in search_dirs:
        if not directory.is_dir():
            out.info(f"No {directory} directory found")
            continue
        found = find_rule_files(directory)
        out.info(f"Found {len(found)} {RULE_FILE_SUFFIX} files in {directory}")
        files.extend(found)

    if not files:
        out.error(f"No {RULE_FILE_SUFFIX} files found to validate")
        ctx.exit(1)

    results = [validate_file(path) for path in files]
    invalid = [r for r in results if not r.valid]

    if out.json_output:
        out.output_json(
            {
                "total": len(results),
                "valid": len(results) - len(invalid),
                "invalid": [
                    {"path": str(r.path), "errors": r.errors} for r in invalid
                ],
            }
        )
    else:
        out.print("")
        out.info(f"Total files checked: {len(results)}")
        out.info(f"Valid files: {len(results) - len(invalid)}")
        out.info(f"Invalid files: {len(invalid)}")
        if not invalid:
            out.success("All files have valid frontmatter!")
        for result in invalid:
            out.print("")
            out.print(str(result.path))
            for error in result.errors:
                out.print(f"   - {error}")

    if invalid:
        out.error(f"{len(invalid)} file(s) have invalid frontmatter")
        ctx.exit(1)


@main.command()
@click.argument(
    "directory", required=False, type=click.Path(file_okay=False, path_type=Path)
)
@click.pass_context
def convert(ctx: Any, directory: Optional[Path]) -> None:
    """Convert manual rules into plain Markdown files.

    DIRECTORY: Directory to search for .mdc files (default: .cursor/rules)

    A rule with alwaysApply: false and no globs is only ever used when
    referenced by hand. Its frontmatter is dropped and the file is saved
    as .md next to the original, which is removed.
    """
    out: OutputFormatter = ctx.obj["out"]
    rules_dir = directory or Path(config.rules_path)

    files = find_rule_files(rules_dir)
    if not files:
        out.info(f"No {RULE_FILE_SUFFIX} files found in {rules_dir} directory.")
        if out.json_output:
            out.output_json({"total": 0, "converted": [], "errors": []})
        return

    out.info(f"Found {len(files)} {RULE_FILE_SUFFIX} files. Processing...")

    converted: list[dict] = []
    errors: list[dict] = []
    for path in files:
        try:
            new_path = convert_rule_file(path)
        except FilesystemError as e:
            out.error(f"Error processing {path}: {e}")
            errors.append({"path": str(path), "message": str(e)})
            continue
        if new_path is not None:
            out.success(f"Converted: {path.name} → {new_path.name}")
            converted.append({"from": str(path), "to": str(new_path)})

    if out.json_output:
        out.output_json(
            {"total": len(files), "converted": converted, "errors": errors}
        )
    else:
        out.print("")
        out.info(f"Summary: Converted {len(converted)} out of {len(files)} files.")

    if errors:
        ctx.exit(1)


if __name__ == "__main__":
    main()
