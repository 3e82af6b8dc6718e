from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..contracts import AttemptOutcome, AttemptStatus, ConvertConfig, ConvertError, SourceItem


class ConversionStrategy(ABC):
    """
    One link of the conversion chain.

    Strategies must:
    - write exactly one JPEG at `destination` on SUCCESS
    - return SKIP (not FAILURE) when the source kind is out of scope or the
      backing tool is not installed
    - never raise for conversion problems; report them as FAILURE
    """

    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def attempt(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> AttemptOutcome:
        raise NotImplementedError

    def _success(self) -> AttemptOutcome:
        return AttemptOutcome(strategy=self.name(), status=AttemptStatus.SUCCESS)

    def _skip(self, code: str, message: str, detail: dict[str, Any] | None = None) -> AttemptOutcome:
        return AttemptOutcome(
            strategy=self.name(),
            status=AttemptStatus.SKIP,
            error=ConvertError(code=code, message=message, detail=detail),
        )

    def _failure(self, code: str, message: str, detail: dict[str, Any] | None = None) -> AttemptOutcome:
        return AttemptOutcome(
            strategy=self.name(),
            status=AttemptStatus.FAILURE,
            error=ConvertError(code=code, message=message, detail=detail),
        )
