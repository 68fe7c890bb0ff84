"""Correction of profiler offsets for host-injected module wrappers.

Node runs a CommonJS file as the body of a synthetic function: the profiler
sees ``prologue + source + epilogue`` and reports offsets into that text.
ECMAScript modules (reported with ``file://`` URLs) run unwrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from v8cov.config.constants import (
    FILE_URL_PREFIX,
    INTERNAL_URL_PREFIXES,
    NODE_CJS_WRAPPER_EPILOGUE,
    NODE_CJS_WRAPPER_PROLOGUE,
)


class ModuleKind(Enum):
    ESM = "esm"
    COMMONJS = "commonjs"


@dataclass(frozen=True, slots=True)
class ScriptUrl:
    """Parsed ``ScriptCoverage.url``."""

    url: str
    path: str
    kind: ModuleKind

    @property
    def is_internal(self) -> bool:
        """True for engine-internal scripts with no file on disk."""
        return not self.url or self.url.startswith(INTERNAL_URL_PREFIXES)


def parse_script_url(url: str) -> ScriptUrl:
    if url.startswith(FILE_URL_PREFIX):
        return ScriptUrl(url=url, path=url[len(FILE_URL_PREFIX) :], kind=ModuleKind.ESM)
    return ScriptUrl(url=url, path=url, kind=ModuleKind.COMMONJS)


@dataclass(frozen=True, slots=True)
class WrapperConvention:
    """Text a host wraps around CommonJS scripts before executing them."""

    prologue: str = NODE_CJS_WRAPPER_PROLOGUE
    epilogue: str = NODE_CJS_WRAPPER_EPILOGUE


NO_WRAPPER = WrapperConvention(prologue="", epilogue="")


class OffsetNormalizer:
    """Maps profiler offsets onto offsets into the raw source text."""

    __slots__ = ("kind", "eof", "shift")

    def __init__(
        self,
        kind: ModuleKind,
        eof: int,
        wrapper: WrapperConvention | None = None,
    ) -> None:
        wrapper = wrapper or WrapperConvention()
        self.kind = kind
        self.eof = eof
        self.shift = len(wrapper.prologue) if kind is ModuleKind.COMMONJS else 0

    def normalize(self, start: int, end: int) -> tuple[int, int]:
        """Shift ``[start, end)`` left by the prologue and clamp to ``[0, eof]``.

        A range lying wholly in the wrapper comes back with ``start > end``
        or collapsed onto a file boundary.
        """
        return max(0, start - self.shift), min(self.eof, end - self.shift)

    def in_bounds(self, start: int, end: int) -> bool:
        """Whether a raw range reaches into the source text at all."""
        lo, hi = start - self.shift, end - self.shift
        return hi > 0 and lo < self.eof
