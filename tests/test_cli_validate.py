from __future__ import annotations

import json
from pathlib import Path

import pytest

from promguard import cli


@pytest.fixture()
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "series": {"http_requests_total": 500, "huge_metric": 50000},
                "labels": {"job": 5, "pod": 800},
            }
        ),
        encoding="utf-8",
    )
    return path


def _run(capsys, *argv: str):
    code = cli.main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


def test_safe_query_exits_zero(capsys, snapshot_file) -> None:
    code, out, _ = _run(capsys, 'http_requests_total{job="api"}', "--snapshot", str(snapshot_file))
    assert code == cli.EXIT_SAFE
    assert json.loads(out) == {"safe": True, "reason": None, "rule": None}


def test_unsafe_query_exits_one(capsys, snapshot_file) -> None:
    code, out, _ = _run(capsys, 'http_requests_total{pod=~".*"}', "--snapshot", str(snapshot_file))
    assert code == cli.EXIT_UNSAFE
    assert json.loads(out)["rule"] == "label-cardinality-exceeded"


def test_threshold_flags_override_defaults(capsys, snapshot_file) -> None:
    code, out, _ = _run(
        capsys,
        'huge_metric{job="a"}',
        "--snapshot",
        str(snapshot_file),
        "--guardrails.max-metric-cardinality",
        "0",
    )
    assert code == cli.EXIT_SAFE, out


def test_rule_list_flag(capsys, snapshot_file) -> None:
    code, out, _ = _run(
        capsys, "http_requests_total", "--snapshot", str(snapshot_file), "--guardrails", "none"
    )
    assert code == cli.EXIT_SAFE


def test_unknown_guardrail_exits_two(capsys, snapshot_file) -> None:
    code, out, err = _run(
        capsys, "up", "--snapshot", str(snapshot_file), "--guardrails", "require-label-matcher,nope"
    )
    assert code == cli.EXIT_CONFIG
    assert out == ""
    assert "unknown guardrail: 'nope'" in err


def test_missing_snapshot_file_exits_two(capsys, tmp_path) -> None:
    code, _, err = _run(capsys, "up", "--snapshot", str(tmp_path / "missing.json"))
    assert code == cli.EXIT_CONFIG
    assert err.startswith("error:")


def test_bad_start_exits_two(capsys, snapshot_file) -> None:
    code, _, err = _run(capsys, "up", "--snapshot", str(snapshot_file), "--start", "soon")
    assert code == cli.EXIT_CONFIG
    assert "timestamp" in err


@pytest.mark.parametrize(
    "content",
    [
        "[1, 2]",
        '"just a string"',
        '{"series": {"up": null}}',
        '{"series": {"up": "12"}}',
        '{"series": {"up": 1.5}}',
        '{"series": {"up": -1}}',
        '{"series": ["up"]}',
        '{"labels": {"job": true}}',
        "{not json",
    ],
)
def test_malformed_snapshot_exits_two(capsys, tmp_path, content) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(content, encoding="utf-8")

    code, out, err = _run(capsys, 'up{job="a"}', "--snapshot", str(path))

    assert code == cli.EXIT_CONFIG
    assert out == ""
    assert err.startswith("error:")
