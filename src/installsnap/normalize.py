"""Ordered text normalization for captured output and generated files.

Every transform is a named regex substitution, applied until its output stops
changing, so applying one twice gives the same result as applying it once. A
pipeline runs its transforms once each, in order.

Order matters inside a pipeline: ``strip_whitespace`` always runs last
because it discards line structure the other patterns anchor on.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

MAX_PASSES = 16

BUILTIN_SUFFIX = "(Node.js built-in)"


@dataclass(frozen=True, slots=True)
class Transform:
    name: str
    pattern: re.Pattern[str]
    replacement: str
    description: str = ""

    @classmethod
    def compile(
        cls,
        name: str,
        pattern: str,
        replacement: str,
        *,
        flags: int = 0,
        description: str = "",
    ) -> Transform:
        return cls(
            name=name,
            pattern=re.compile(pattern, flags),
            replacement=replacement,
            description=description,
        )

    def __call__(self, text: str) -> str:
        for _ in range(MAX_PASSES):
            updated = self.pattern.sub(self.replacement, text)
            if updated == text:
                break
            text = updated
        return text


@dataclass(frozen=True, slots=True)
class Pipeline:
    """Ordered composition of transforms, applied in a single pass."""

    name: str
    transforms: tuple[Transform, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        names = [transform.name for transform in self.transforms]
        if len(set(names)) != len(names):
            raise ValueError(f"Pipeline {self.name!r} lists a transform twice.")
        if WHITESPACE in self.transforms and self.transforms[-1] is not WHITESPACE:
            raise ValueError(f"Pipeline {self.name!r} must apply strip_whitespace last.")

    def __call__(self, text: str) -> str:
        for transform in self.transforms:
            text = transform(text)
        return text

    def __iter__(self) -> Iterator[Transform]:
        return iter(self.transforms)

    def names(self) -> tuple[str, ...]:
        return tuple(transform.name for transform in self.transforms)


def build_pipeline(name: str, transforms: Iterable[Transform]) -> Pipeline:
    return Pipeline(name=name, transforms=tuple(transforms))


# ── Transforms ──────────────────────────────────────────────────────

BENCHMARK = Transform.compile(
    "strip_benchmark",
    r"\s*\[\d+(?:\.\d+)?s\](\n?)",
    r"\1",
    description="Build duration annotations such as `[1.2s]`.",
)

STATS = Transform.compile(
    "strip_stats",
    r"\s+[\d.]+ KB",
    "    XXXX KB",
    description="File size reports such as `12.34 KB`.",
)

CHUNK_HASH = Transform.compile(
    "strip_chunk_hash",
    r"([\w\-]+-)[a-z0-9]{8}(\.js)",
    r"\1XXXXXXXX\2",
    description="Content hashes in generated file names (`app-a1b2c3d4.js`).",
)

URL_HASH = Transform.compile(
    "strip_url_hash",
    r"-[A-Za-z0-9]{20}/",
    "-XXXXXXXX/",
    description="20 character hashes inside URL path segments.",
)

CONFIG_ERROR_PATH = Transform.compile(
    "strip_config_error_path",
    r"^! (.*)package\.json$",
    "! XXX/package.json",
    flags=re.MULTILINE,
    description="Absolute paths in configuration error messages.",
)

RESOLVE_ERROR_PATH = Transform.compile(
    "strip_resolve_error_path",
    r'" via "(.*)"',
    '" via "XXX"',
    description="Module resolution context in import errors.",
)

# Simultaneous errors are reported in no stable order; the count is the signal.
BUILTIN_MODULE = Transform.compile(
    "strip_builtin_module",
    r'"[^"]+"(\s+' + re.escape(BUILTIN_SUFFIX) + ")",
    r'"XXXX"\1',
    description="Quoted built-in module names followed by the built-in suffix.",
)

STACKTRACE = Transform.compile(
    "strip_stacktrace",
    r"^\s+at\s+.*",
    "",
    flags=re.MULTILINE,
    description="Stack trace frames (`    at fn (file:1:2)`).",
)

ANSI_ESCAPES = Transform.compile(
    "strip_ansi_escapes",
    r"[\x1b\x9b][\[\]()#;?]*(?:"
    r"(?:(?:[a-zA-Z\d]*(?:;[-a-zA-Z\d/#&.:=?%@~_]*)*)?\x07)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PR-TZcf-ntqry=><~]))",
    "",
    description="ANSI colour and cursor control sequences.",
)

REVISION = Transform.compile(
    "strip_revision",
    r"\?rev=\w+",
    "?rev=XXXXXXXXXX",
    description="Revision query strings in emitted import URLs.",
)

# Literal `\r\n` / `\n` escapes are dropped along with trailing whitespace.
WHITESPACE = Transform.compile(
    "strip_whitespace",
    r"(\s+$)|(\\r\\n)|(\\n)",
    "",
    flags=re.MULTILINE,
    description="Trailing whitespace, blank lines and line ending variants.",
)

ALL_TRANSFORMS: tuple[Transform, ...] = (
    BUILTIN_MODULE,
    STACKTRACE,
    ANSI_ESCAPES,
    STATS,
    CHUNK_HASH,
    BENCHMARK,
    RESOLVE_ERROR_PATH,
    CONFIG_ERROR_PATH,
    URL_HASH,
    REVISION,
    WHITESPACE,
)

# ── Pipelines ───────────────────────────────────────────────────────

OUTPUT_PIPELINE = build_pipeline(
    "output",
    (
        BUILTIN_MODULE,
        STACKTRACE,
        ANSI_ESCAPES,
        STATS,
        CHUNK_HASH,
        BENCHMARK,
        RESOLVE_ERROR_PATH,
        CONFIG_ERROR_PATH,
        WHITESPACE,
    ),
)

LOCKFILE_PIPELINE = build_pipeline("lockfile", (WHITESPACE,))

LOCKFILE_HASH_PIPELINE = build_pipeline("lockfile-hash", (URL_HASH, WHITESPACE))

TREE_FILE_PIPELINE = build_pipeline("tree-file", (REVISION, CHUNK_HASH, WHITESPACE))


def transform_by_name(name: str) -> Transform:
    for transform in ALL_TRANSFORMS:
        if transform.name == name:
            return transform
    raise KeyError(name)


__all__ = [
    "ALL_TRANSFORMS",
    "ANSI_ESCAPES",
    "BENCHMARK",
    "BUILTIN_MODULE",
    "CHUNK_HASH",
    "CONFIG_ERROR_PATH",
    "LOCKFILE_HASH_PIPELINE",
    "LOCKFILE_PIPELINE",
    "OUTPUT_PIPELINE",
    "Pipeline",
    "RESOLVE_ERROR_PATH",
    "REVISION",
    "STACKTRACE",
    "STATS",
    "TREE_FILE_PIPELINE",
    "Transform",
    "URL_HASH",
    "WHITESPACE",
    "build_pipeline",
    "transform_by_name",
]
