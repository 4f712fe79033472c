import re
import warnings

import pytest

from installsnap.normalize import (
    ALL_TRANSFORMS,
    ANSI_ESCAPES,
    BENCHMARK,
    BUILTIN_MODULE,
    CHUNK_HASH,
    CONFIG_ERROR_PATH,
    LOCKFILE_HASH_PIPELINE,
    OUTPUT_PIPELINE,
    RESOLVE_ERROR_PATH,
    REVISION,
    STACKTRACE,
    STATS,
    TREE_FILE_PIPELINE,
    URL_HASH,
    WHITESPACE,
    Transform,
    build_pipeline,
    transform_by_name,
)

SAMPLES = (
    "",
    "   ",
    "Installed 3 dependencies.\n[1.2s]\n",
    "done [12s]\n",
    "[[1.2s]1.5s]",
    "  web_modules/preact.js  12.34 KB\n  web_modules/common/index.js  0.5 KB",
    "import './common/index-a1b2c3d4.js'",
    "https://cdn.pika.dev/-/preact@v10.0.0-abcdefghij0123456789/dist=es2019/preact.js",
    "! /home/user/project/package.json\nnext line",
    '✖ "react" via "/abs/src/index.js"',
    '"fs" (Node.js built-in)\n"path"   (Node.js built-in)',
    "Error: boom\n    at foo (a.js:1:2)\n    at bar (b.js:3:4)\ndone",
    "\x1b[32m✔\x1b[39m install complete\x1b[0K",
    "import x from './a.js?rev=abc123';",
    "line one   \r\nline two\t\n\n\nline three\n",
    "literal \\r\\n and \\n escapes",
    "\\\\nn",
    "[1.\n2s]",
)


@pytest.mark.parametrize("transform", ALL_TRANSFORMS, ids=lambda t: t.name)
@pytest.mark.parametrize("text", SAMPLES)
def test_every_transform_is_idempotent(transform: Transform, text: str) -> None:
    once = transform(text)
    assert transform(once) == once


@pytest.mark.parametrize(
    "pipeline",
    (OUTPUT_PIPELINE, LOCKFILE_HASH_PIPELINE, TREE_FILE_PIPELINE),
    ids=lambda p: p.name,
)
@pytest.mark.parametrize("text", SAMPLES)
def test_pipelines_are_idempotent(pipeline, text: str) -> None:
    once = pipeline(text)
    assert pipeline(once) == once


def test_benchmark_annotation_is_removed() -> None:
    assert BENCHMARK("Installed 3 dependencies.\n[1.2s]\n") == "Installed 3 dependencies.\n"
    assert BENCHMARK("done [12s]") == "done"
    assert BENCHMARK("done [5s]") == "done"


def test_timing_is_invisible_after_output_pipeline() -> None:
    captured = "Installed 3 dependencies.\n[1.2s]\n"
    golden = "Installed 3 dependencies.\n[0.4s]\n"
    assert OUTPUT_PIPELINE(captured) == "Installed 3 dependencies."
    assert OUTPUT_PIPELINE(captured) == OUTPUT_PIPELINE(golden)


def test_sizes_collapse_to_placeholder() -> None:
    assert STATS("  web_modules/a.js  12.34 KB") == "  web_modules/a.js    XXXX KB"
    assert STATS("a.js 1 KB") == STATS("a.js 1024.5 KB")


def test_chunk_hash_in_file_names() -> None:
    assert CHUNK_HASH("import './common/index-a1b2c3d4.js'") == (
        "import './common/index-XXXXXXXX.js'"
    )
    assert CHUNK_HASH("dist/app-a1b2c3d4.js") == "dist/app-XXXXXXXX.js"
    assert CHUNK_HASH("dist/app-A1B2C3D4.js") == "dist/app-A1B2C3D4.js"
    assert CHUNK_HASH("dist/app.js") == "dist/app.js"
    assert CHUNK_HASH("dist/app-a1b2c3d4.css") == "dist/app-a1b2c3d4.css"


def test_url_hash_segments() -> None:
    url = "https://cdn.pika.dev/-/preact@v10.0.0-abcdefghij0123456789/dist=es2019/preact.js"
    assert URL_HASH(url) == "https://cdn.pika.dev/-/preact@v10.0.0-XXXXXXXX/dist=es2019/preact.js"


def test_config_error_path_on_posix_and_windows() -> None:
    assert CONFIG_ERROR_PATH("! /home/user/project/package.json\nnext") == (
        "! XXX/package.json\nnext"
    )
    assert CONFIG_ERROR_PATH("! C:\\Users\\me\\project\\package.json") == "! XXX/package.json"


def test_resolve_error_context() -> None:
    assert RESOLVE_ERROR_PATH('✖ "react" via "/abs/src/index.js"') == '✖ "react" via "XXX"'


def test_builtin_module_names_keep_their_count() -> None:
    first = '"fs" (Node.js built-in)\n"path" (Node.js built-in)'
    second = '"path" (Node.js built-in)\n"fs" (Node.js built-in)'
    assert BUILTIN_MODULE(first) == BUILTIN_MODULE(second)
    assert BUILTIN_MODULE(first).count('"XXXX"') == 2
    assert BUILTIN_MODULE(first) != BUILTIN_MODULE('"fs" (Node.js built-in)')


def test_stacktrace_frames_are_dropped() -> None:
    text = "Error: boom\n    at foo (a.js:1:2)\n    at bar (b.js:3:4)\ndone"
    assert STACKTRACE(text) == "Error: boom\n\n\ndone"
    assert OUTPUT_PIPELINE(text) == "Error: boom\ndone"


def test_stacktrace_keeps_unindented_lines() -> None:
    assert STACKTRACE("at least one\n  attribute") == "at least one\n  attribute"


def test_ansi_escapes_are_removed() -> None:
    assert ANSI_ESCAPES("\x1b[32m✔\x1b[39m install complete\x1b[0K") == "✔ install complete"
    assert ANSI_ESCAPES("\x1b]0;title\x07body") == "body"


def test_revision_query_strings() -> None:
    assert REVISION("import x from './a.js?rev=abc123';") == (
        "import x from './a.js?rev=XXXXXXXXXX';"
    )


def test_whitespace_and_line_endings() -> None:
    assert WHITESPACE("line one   \r\nline two\t\n\n\nline three\n") == (
        "line one\nline two\nline three"
    )
    assert WHITESPACE("literal \\r\\n and \\n escapes") == "literal  and  escapes"


def test_whitespace_runs_last_in_every_pipeline() -> None:
    for pipeline in (OUTPUT_PIPELINE, LOCKFILE_HASH_PIPELINE, TREE_FILE_PIPELINE):
        assert pipeline.names()[-1] == "strip_whitespace"


def test_pipeline_rejects_whitespace_before_other_transforms() -> None:
    with pytest.raises(ValueError, match="last"):
        build_pipeline("broken", (WHITESPACE, BENCHMARK))


def test_pipeline_rejects_duplicate_transforms() -> None:
    with pytest.raises(ValueError, match="twice"):
        build_pipeline("broken", (BENCHMARK, BENCHMARK))


def test_transform_lookup_by_name() -> None:
    assert transform_by_name("strip_revision") is REVISION
    with pytest.raises(KeyError):
        transform_by_name("strip_everything")


def test_output_pipeline_on_realistic_install_log() -> None:
    captured = (
        "\x1b[2m[snowpack]\x1b[22m installing dependencies...\n"
        "  ⦿ web_modules/preact.js  [1.2s]\n"
        "    web_modules/preact.js  12.34 KB\n"
        "    web_modules/common/index-0a1b2c3d.js  1.02 KB\n"
        "✔ install complete [0.73s]\n"
    )
    golden = (
        "[snowpack] installing dependencies...\n"
        "  ⦿ web_modules/preact.js\n"
        "    web_modules/preact.js    XXXX KB\n"
        "    web_modules/common/index-XXXXXXXX.js    XXXX KB\n"
        "✔ install complete\n"
    )
    assert OUTPUT_PIPELINE(captured) == OUTPUT_PIPELINE(golden)


def test_pipeline_applies_each_transform_once_in_order() -> None:
    # Trailing spaces keep the path out of reach of the anchored config pattern.
    text = "! /home/alice/proj/package.json   \n"
    assert OUTPUT_PIPELINE(text) == "! /home/alice/proj/package.json"
    assert OUTPUT_PIPELINE("! /home/alice/proj/package.json\n") == "! XXX/package.json"


def test_ansi_pattern_compiles_without_warnings() -> None:
    re.purge()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        re.compile(ANSI_ESCAPES.pattern.pattern)
