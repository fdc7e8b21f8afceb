import json

import pytest
from backend.clipper import search_cli


def test_cli_text_output(capsys):
    assert search_cli.main(["--price-tier", "$$$", "--rating-min", "4.6"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Manual filters applied."
    assert out[1].startswith("  [4] The Dapper Den ($$$, 4.9)")
    assert len(out) == 2


def test_cli_json_output_reports_failed_interpretation(capsys):
    # no API key in tests, so the free-text part degrades
    assert search_cli.main(["fade near me", "--location", "metro", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ai_failed"] is True
    assert payload["summary"] == "AI search failed. Manual filters applied."
    assert [shop["id"] for shop in payload["results"]] == ["5"]
    assert payload["dimensions"] == ["location"]


def test_cli_rejects_bad_tier(capsys):
    with pytest.raises(SystemExit) as excinfo:
        search_cli.main(["--price-tier", "$$$$"])
    assert excinfo.value.code == 2
    assert "invalid filter" in capsys.readouterr().err


def test_cli_reports_missing_catalog(tmp_path, capsys):
    with pytest.raises(SystemExit):
        search_cli.main(["--catalog", str(tmp_path / "missing.json")])
    assert "Catalog file not found" in capsys.readouterr().err
