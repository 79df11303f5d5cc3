"""Filesystem writer for generated client modules."""

from __future__ import annotations

from pathlib import Path
import subprocess
import sys

_GENERATED_RUFF_IGNORE_CODES: tuple[str, ...] = (
    "D100",
    "D101",
    "D102",
    "D103",
    "D107",
    "D205",
    "D301",
    "D415",
    "E501",
    "E741",
    "F821",
)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def write_module(output_dir: Path, module_name: str, source: str, *, overwrite: bool) -> Path:
    """Write one generated module into ``output_dir``.

    Args:
        output_dir (Path): Directory to write into; created when missing.
        module_name (str): Module file stem.
        source (str): Module source code.
        overwrite (bool): Whether an existing module file may be replaced.

    Returns:
        Path: Path of the written module file.
    """
    path = output_dir / f"{module_name}.py"
    if path.exists() and not overwrite:
        raise WriteError(f"Output file already exists: {path}")

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"Failed to create output directory {output_dir}: {exc}") from exc
    _write_file(path, source)
    return path


def format_generated_file(path: Path) -> None:
    """Run Ruff auto-fixes and formatter against a generated module.

    Args:
        path (Path): Generated module to format.
    """
    _run_ruff(path=path, args=("format", str(path)))
    _run_ruff(
        path=path,
        args=(
            "check",
            "--fix",
            "--ignore",
            ",".join(_GENERATED_RUFF_IGNORE_CODES),
            str(path),
        ),
    )
    _run_ruff(path=path, args=("format", str(path)))


def _run_ruff(*, path: Path, args: tuple[str, ...]) -> None:
    command = [sys.executable, "-m", "ruff", *args]
    command_desc = " ".join(args[:1])
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {command_desc} for {path}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {command_desc} failed for {path}: {error_text}") from exc


def _write_file(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc
