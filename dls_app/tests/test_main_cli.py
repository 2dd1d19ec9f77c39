import sys
from types import ModuleType

import pytest
from openpyxl import load_workbook

from dls_app import main as cli
from dls_app.tests.zmes_test_utils import RECORD_GUID, two_record_file


@pytest.fixture
def parser_module(monkeypatch):
    module = ModuleType("fake_cli_parser")
    module.parse = lambda data: two_record_file()
    monkeypatch.setitem(sys.modules, "fake_cli_parser", module)
    return "fake_cli_parser:parse"


def test_main_writes_workbook(tmp_path, parser_module):
    source = tmp_path / "in.zmes"
    source.write_bytes(b"zmes")
    out = tmp_path / "out.xlsx"

    status = cli.main([str(source), "-o", str(out), "--parser", parser_module])

    assert status == 0
    wb = load_workbook(out)
    rows = list(wb["Distributions"].iter_rows(values_only=True))
    assert rows[1][0] == RECORD_GUID


def test_main_reads_config_file(tmp_path, parser_module):
    source = tmp_path / "in.zmes"
    source.write_bytes(b"zmes")
    config = tmp_path / "options.yaml"
    config.write_text(f"parser: {parser_module}\nexport_layout: wide\n", encoding="utf-8")
    out = tmp_path / "out.xlsx"

    assert cli.main([str(source), "-o", str(out), "--config", str(config)]) == 0
    header = next(load_workbook(out)["Distributions"].iter_rows(values_only=True))
    assert header[0] == "TEST XX230.A:Particle diameter (nm)"


def test_main_requires_parser(tmp_path):
    source = tmp_path / "in.zmes"
    source.write_bytes(b"zmes")

    with pytest.raises(SystemExit, match="No .zmes parser configured"):
        cli.main([str(source), "-o", str(tmp_path / "out.xlsx")])


def test_main_missing_input(tmp_path, parser_module):
    with pytest.raises(SystemExit, match="Input file not found"):
        cli.main([str(tmp_path / "missing.zmes"), "-o", str(tmp_path / "out.xlsx"), "--parser", parser_module])


def test_main_unresolvable_parser(tmp_path):
    source = tmp_path / "in.zmes"
    source.write_bytes(b"zmes")

    with pytest.raises(SystemExit, match="Cannot import parser module"):
        cli.main([str(source), "-o", str(tmp_path / "out.xlsx"), "--parser", "no_such_zmes_mod:parse"])


def test_main_records_analysis_identity_in_audit_log(tmp_path, parser_module):
    source = tmp_path / "in.zmes"
    source.write_bytes(b"zmes")
    out = tmp_path / "out.xlsx"

    cli.main([str(source), "-o", str(out), "--parser", parser_module, "--id", "run-42", "--label", "Latex beads"])

    entries = [row[1] for row in load_workbook(out)["Audit_Log"].iter_rows(min_row=2, values_only=True)]
    assert entries[0].startswith("DLS conversion 0.1.0 start:")
    loaded = [entry for entry in entries if "Loaded 1 spectra" in entry]
    assert len(loaded) == 1
    assert "into analysis run-42 (Latex beads)" in loaded[0]
