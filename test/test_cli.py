from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path

import pytest

from refcheck.cli import _human_bytes, async_main, main


def _run(argv):
    out = io.StringIO()
    code = asyncio.run(async_main(argv, stdout=out))
    return code, out.getvalue()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # keep load_config() away from any real pyproject.toml
    work = tmp_path / "cwd"
    work.mkdir()
    monkeypatch.chdir(work)


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "refcheck" in capsys.readouterr().out


def test_check_clean_site_exits_zero(site):
    (site / "index.html").write_text('<a href="/about/">about</a>', encoding="utf-8")
    code, out = _run(["check", str(site), "--no-external"])
    assert code == 0
    assert "0 errors in 3 documents" in out


def test_check_reports_errors_and_writes_json(site, tmp_path):
    (site / "index.html").write_text(
        '<a href="/missing.html">x</a><a href="mailto:nobody">y</a>', encoding="utf-8"
    )
    json_path = tmp_path / "out" / "report.json"
    code, out = _run(["check", str(site), "--no-external", "--json", str(json_path)])
    assert code == 1
    assert "target does not exist --> /missing.html" in out
    assert "contains an invalid email address" in out

    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data["documents"] == 3
    assert {i["message"] for i in data["issues"]} == {
        "target does not exist",
        "contains an invalid email address",
    }
    assert all(i["document"] == "index.html" for i in data["issues"])


def test_show_debug_lists_passing_links(site):
    (site / "index.html").write_text('<a href="/about/">about</a>', encoding="utf-8")
    code, out = _run(["check", str(site), "--no-external", "--show-debug"])
    assert code == 0
    assert "[DEBUG  ] target is a directory --> /about/" in out


def test_check_missing_directory(tmp_path):
    code, _ = _run(["check", str(tmp_path / "nope")])
    assert code == 2


def test_cache_commands(tmp_path):
    cache_dir = str(tmp_path / "cache")
    code, out = _run(["cache", "--dir", cache_dir, "stats"])
    assert code == 0
    assert json.loads(out)["items"] == 0

    code, out = _run(["cache", "--dir", cache_dir, "inspect", "https://example.com/"])
    assert code == 2
    assert "Cache miss" in out

    code, out = _run(["cache", "--dir", cache_dir, "clear"])
    assert code == 0
    assert "Cache cleared at:" in out


@pytest.mark.parametrize(
    "n, expected",
    [(0, "0 B"), (1023, "1023 B"), (1024, "1 KB"), (1536, "1.5 KB"), (1048576, "1 MB")],
)
def test_human_bytes(n, expected):
    assert _human_bytes(n) == expected


def test_nul_byte_href_is_a_link_error_not_a_config_error(site, caplog):
    (site / "index.html").write_text(
        '<a href="/a%00b.html">x</a><a href="/missing.html">y</a>', encoding="utf-8"
    )
    code, out = _run(["check", str(site), "--no-external"])
    assert code == 1
    assert "target does not exist --> /a%00b.html" in out
    assert "target does not exist --> /missing.html" in out
    assert "Invalid configuration" not in caplog.text


def test_bad_config_exits_two(site):
    (Path.cwd() / "pyproject.toml").write_text(
        '[tool.refcheck]\nignore_urls = ["("]\n', encoding="utf-8"
    )
    code, _ = _run(["check", str(site)])
    assert code == 2
