from __future__ import annotations

import shutil
from pathlib import Path

import orjson
import pytest

from cli import EXIT_EMPTY_SCAN, EXIT_ERROR, EXIT_FAILED, EXIT_OK, main
from rules.config import CONFIG_FILENAME, load_config, resolve_output_dir

FIXTURES = Path(__file__).parent / "fixtures"
FIXTURE_README = FIXTURES / "registry_readme.md"


def _make_repo(root: Path, *, with_catalog: bool = True) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    if with_catalog:
        shutil.copytree(FIXTURES / "catalog", root / "catalog")
    return root


def test_cli_scrape_smoke(tmp_path: Path) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    out_dir = tmp_path / "out"

    exit_code = main(
        ["scrape", str(repo_root), "--input", str(FIXTURE_README), "--out-dir", str(out_dir)]
    )

    assert exit_code == EXIT_OK
    payload = orjson.loads((out_dir / "scan_result.json").read_bytes())
    assert payload["TotalServers"] == 9
    assert payload["Categories"] == {"OfficialIntegrations": 5, "CommunityServers": 4}
    assert payload["SchemaVersion"] == 1


def test_cli_scrape_default_output_dir(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    default_out_dir = resolve_output_dir(repo_root, load_config(repo_root).output_dir)

    assert not default_out_dir.exists(), "output dir must not pre-exist"
    exit_code = main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])

    assert exit_code == EXIT_OK
    assert (default_out_dir / "scan_result.json").is_file()
    assert str(default_out_dir / "scan_result.json") in capsys.readouterr().out


def test_cli_scrape_empty_scan_aborts(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    document = tmp_path / "README.md"
    document.write_text("# Servers\n\nNothing here yet.\n", encoding="utf-8")

    exit_code = main(["scrape", str(repo_root), "--input", str(document)])

    assert exit_code == EXIT_EMPTY_SCAN
    assert "Scan found no servers" in capsys.readouterr().err
    assert not (repo_root / ".registry-sync").exists()


def test_cli_scrape_empty_scan_proceeds_when_configured(tmp_path: Path) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    (repo_root / CONFIG_FILENAME).write_text('on_empty_scan = "proceed"\n', encoding="utf-8")
    document = tmp_path / "README.md"
    document.write_text("# Servers\n", encoding="utf-8")

    exit_code = main(["scrape", str(repo_root), "--input", str(document)])

    assert exit_code == EXIT_OK
    payload = orjson.loads((repo_root / ".registry-sync" / "scan_result.json").read_bytes())
    assert payload["TotalServers"] == 0


def test_cli_scrape_blank_document_is_an_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    document = tmp_path / "README.md"
    document.write_text("   \n", encoding="utf-8")

    exit_code = main(["scrape", str(repo_root), "--input", str(document)])

    assert exit_code == EXIT_ERROR
    assert "Registry document is empty." in capsys.readouterr().err


def test_cli_scrape_missing_input_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")

    exit_code = main(["scrape", str(repo_root), "--input", str(tmp_path / "nope.md")])

    assert exit_code == EXIT_ERROR
    assert "Failed to read" in capsys.readouterr().err


def test_cli_output_dir_escape_is_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    (repo_root / CONFIG_FILENAME).write_text('output_dir = "../elsewhere"\n', encoding="utf-8")

    exit_code = main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])

    assert exit_code == EXIT_ERROR
    assert "escapes the repository root" in capsys.readouterr().err


def test_cli_reconcile_end_to_end(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    assert main(["scrape", str(repo_root), "--input", str(FIXTURE_README)]) == EXIT_OK
    capsys.readouterr()

    exit_code = main(["reconcile", str(repo_root)])

    assert exit_code == EXIT_OK
    assert (
        "new=5 changed=1 unchanged=1 conflicts=1 absent=1" in capsys.readouterr().out
    )

    out_dir = repo_root / ".registry-sync"
    changeset = orjson.loads((out_dir / "changeset.json").read_bytes())
    assert [entry["identity"] for entry in changeset["changed"]] == ["Ableton Live"]
    assert changeset["unchanged"] == ["Apify"]
    assert changeset["absent"] == ["Retired Server"]
    assert [conflict["identity"] for conflict in changeset["conflicts"]] == ["Axiom"]

    pending = out_dir / "pending"
    assert (pending / "official" / "Bitbucket.json").is_file()
    assert (pending / "community" / "Airtable.json").is_file()
    assert (pending / "community" / "Ableton Live.json").is_file()
    assert not (pending / "official" / "Axiom.json").exists()


def test_cli_reconcile_no_stage_skips_drafts(tmp_path: Path) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])

    exit_code = main(["reconcile", str(repo_root), "--no-stage"])

    assert exit_code == EXIT_OK
    assert (repo_root / ".registry-sync" / "changeset.json").is_file()
    assert not (repo_root / ".registry-sync" / "pending").exists()


def test_cli_reconcile_without_scan_reports_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")

    exit_code = main(["reconcile", str(repo_root)])

    assert exit_code == EXIT_ERROR
    assert "Scan result does not exist" in capsys.readouterr().err


def test_cli_reconcile_invalid_catalog_reports_errors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])
    broken = repo_root / "catalog" / "official" / "Broken.json"
    broken.write_text('{"identity": "Broken"}', encoding="utf-8")

    exit_code = main(["reconcile", str(repo_root)])

    assert exit_code == EXIT_FAILED
    err = capsys.readouterr().err
    assert f"{broken}#approver_id: Missing required field (expected non-empty string)." in err


def test_cli_validate_fixture_catalog(tmp_path: Path) -> None:
    repo_root = _make_repo(tmp_path / "repo")

    assert main(["validate", str(repo_root)]) == EXIT_OK


def test_cli_validate_default_catalog_dir_reports_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo", with_catalog=False)
    default_catalog_dir = (repo_root / load_config(repo_root).catalog_dir).resolve()

    monkeypatch.chdir(repo_root)
    exit_code = main(["validate"])

    assert exit_code == EXIT_FAILED
    captured = capsys.readouterr()
    assert f"{default_catalog_dir}:" in captured.err
    assert "Catalog directory does not exist." in captured.err


def test_cli_validate_includes_path_and_field(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    catalog_dir = tmp_path / "catalog"
    shutil.copytree(FIXTURES / "catalog", catalog_dir)
    moved = catalog_dir / "official" / "Ableton Live.json"
    shutil.move(catalog_dir / "community" / "Ableton Live.json", moved)

    exit_code = main(["validate", str(tmp_path), "--catalog-dir", str(catalog_dir)])

    assert exit_code == EXIT_FAILED
    captured = capsys.readouterr()
    assert f"{moved.resolve()}#category:" in captured.err
    assert "Partition mismatch" in captured.err


def test_cli_verify_after_scrape(tmp_path: Path) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])

    exit_code = main(["verify", str(repo_root), "--input", str(FIXTURE_README)])

    assert exit_code == EXIT_OK


def test_cli_verify_reports_mismatch(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    main(["scrape", str(repo_root), "--input", str(FIXTURE_README)])
    edited = tmp_path / "edited.md"
    edited.write_text(
        FIXTURE_README.read_text(encoding="utf-8").replace(
            "Bitbucket repository access", "Bitbucket access"
        ),
        encoding="utf-8",
    )
    capsys.readouterr()

    exit_code = main(["verify", str(repo_root), "--input", str(edited)])

    assert exit_code == EXIT_FAILED
    assert "mismatches: 3:Bitbucket" in capsys.readouterr().err


def test_cli_verify_missing_scan_reports_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")
    default_scan = resolve_output_dir(repo_root, ".registry-sync") / "scan_result.json"

    exit_code = main(["verify", str(repo_root), "--input", str(FIXTURE_README)])

    assert exit_code == EXIT_ERROR
    assert f"scan: {default_scan}" in capsys.readouterr().err


def test_cli_sync_dry_run_lists_records(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")

    exit_code = main(["sync", str(repo_root), "--dry-run"])

    assert exit_code == EXIT_OK
    assert capsys.readouterr().out.splitlines() == [
        "would push: Ableton Live",
        "would push: Apify",
        "would push: Retired Server",
    ]


def test_cli_sync_without_api_is_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = _make_repo(tmp_path / "repo")

    exit_code = main(["sync", str(repo_root)])

    assert exit_code == EXIT_ERROR
    assert "catalog_api.base_url is not configured" in capsys.readouterr().err
