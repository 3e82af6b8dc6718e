from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from abc import abstractmethod
from pathlib import Path

from ..contracts import AttemptOutcome, ConvertConfig, SourceItem, SourceKind
from .base import ConversionStrategy

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 4000


def have_command(name: str) -> bool:
    return shutil.which(name) is not None


def run_tool(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    """
    Run an external tool to completion (no timeout), capturing its output.
    """

    logger.debug("Running: %s", shlex.join(cmd))
    return subprocess.run(
        cmd,
        check=False,
        capture_output=True,
        stdin=subprocess.DEVNULL,
        text=True,
        errors="replace",
    )


def tool_error_detail(*, command_template: list[str], proc: subprocess.CompletedProcess[str]) -> dict:
    return {
        "command_template": command_template,
        "returncode": proc.returncode,
        "stderr": (proc.stderr or "")[-STDERR_TAIL_CHARS:],
    }


def imagemagick_args(
    *, source: Path, kind: SourceKind, config: ConvertConfig, all_pages: bool = False
) -> list[str]:
    """
    Shared ImageMagick pipeline. PDFs are rasterized from their first page
    unless `all_pages` is set.
    """

    if kind == SourceKind.PDF:
        return [
            "-density",
            str(config.pdf_density),
            str(source) if all_pages else f"{source}[0]",
            *_standard_pipeline(config),
        ]
    return [str(source), *_standard_pipeline(config)]


def _standard_pipeline(config: ConvertConfig) -> list[str]:
    return ["-auto-orient", "-colorspace", "sRGB", "-quality", str(config.jpeg_quality), "-strip"]


class ExternalToolStrategy(ConversionStrategy):
    """
    Base for strategies backed by one command-line tool.
    """

    def __init__(self, command: str) -> None:
        self.command = command

    def name(self) -> str:
        return self.command

    def applies_to(self, kind: SourceKind) -> bool:
        return True

    @abstractmethod
    def build_args(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> list[str]:
        raise NotImplementedError

    def attempt(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> AttemptOutcome:
        if not self.applies_to(source.kind):
            return self._skip(
                "CONVERT_NOT_APPLICABLE",
                f"{self.command} is not used for this source kind",
                {"kind": source.kind.value},
            )
        if not have_command(self.command):
            return self._skip(
                "CONVERT_TOOL_UNAVAILABLE",
                f"{self.command} binary not found on PATH",
                {"expected_command": self.command},
            )

        args = self.build_args(source=source, destination=destination, config=config)
        cmd = [self.command, *args]
        # Keep results portable: do not embed absolute paths.
        template = [self.command, *templated_args(args, source=source.path, destination=destination)]

        try:
            proc = run_tool(cmd)
        except OSError as e:
            return self._failure(
                "CONVERT_TOOL_FAILED",
                f"{self.command} could not be started",
                {"command_template": template, "error": repr(e)},
            )

        if proc.returncode != 0:
            return self._failure(
                "CONVERT_TOOL_FAILED",
                f"{self.command} returned a non-zero exit code",
                tool_error_detail(command_template=template, proc=proc),
            )

        if not destination.is_file():
            return self._failure(
                "CONVERT_TOOL_NO_OUTPUT",
                f"{self.command} exited cleanly but wrote no output",
                {"command_template": template},
            )

        return self._success()


def templated_args(args: list[str], *, source: Path, destination: Path) -> list[str]:
    src, dst = str(source), str(destination)
    out: list[str] = []
    for a in args:
        if a == dst:
            out.append("<DESTINATION>")
        elif a.startswith(src):
            out.append("<SOURCE>" + a[len(src):])
        else:
            out.append(a)
    return out


class ImageMagickStrategy(ExternalToolStrategy):
    def build_args(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> list[str]:
        return [*imagemagick_args(source=source.path, kind=source.kind, config=config), str(destination)]


class FfmpegFrameStrategy(ExternalToolStrategy):
    """
    First video frame as a high-quality still.
    """

    def applies_to(self, kind: SourceKind) -> bool:
        return kind == SourceKind.VIDEO

    def build_args(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> list[str]:
        return ["-y", "-i", str(source.path), "-frames:v", "1", "-q:v", "2", str(destination)]


class HeifConvertStrategy(ExternalToolStrategy):
    def applies_to(self, kind: SourceKind) -> bool:
        return kind == SourceKind.HEIF

    def build_args(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> list[str]:
        return [str(source.path), str(destination)]
