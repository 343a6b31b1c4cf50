"""Unit tests for the command-line interface."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from einvoice_qc.cli import infer_format, load_submissions, main


@pytest.fixture
def legacy_file(tmp_path: Path, legacy_invoice: Dict[str, Any]) -> Path:
    path = tmp_path / "legacy.json"
    path.write_text(json.dumps(legacy_invoice), encoding="utf-8")
    return path


@pytest.fixture
def xml_file(tmp_path: Path, xml_invoice: str) -> Path:
    path = tmp_path / "invoice.xml"
    path.write_text(xml_invoice, encoding="utf-8")
    return path


@pytest.mark.parametrize("name,declared,expected", [
    ("a.xml", None, "xml"),
    ("a.XML", None, "xml"),
    ("a.json", None, "json"),
    ("a.txt", None, "json"),
    ("a.json", "xml", "xml"),
])
def test_infer_format(name: str, declared, expected: str) -> None:
    assert infer_format(Path(name), declared) == expected


def test_load_submissions_expands_arrays(tmp_path: Path, legacy_invoice: Dict[str, Any], xml_file: Path) -> None:
    batch = tmp_path / "batch.json"
    batch.write_text(json.dumps([legacy_invoice, legacy_invoice]), encoding="utf-8")

    submissions = load_submissions([str(batch), str(xml_file)], None)

    assert [s.source for s in submissions] == ["batch.json[0]", "batch.json[1]", "invoice.xml"]
    assert [s.format for s in submissions] == ["json", "json", "xml"]
    assert isinstance(submissions[2].payload, bytes)


class TestValidateCommand:
    """einvoice-qc validate."""

    def test_valid_files(self, legacy_file: Path, xml_file: Path, capsys: pytest.CaptureFixture) -> None:
        exit_code = main(["validate", str(legacy_file), str(xml_file)])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Total invoices:   2" in out

    def test_invalid_file_sets_exit_code(
        self, tmp_path: Path, legacy_invoice: Dict[str, Any], capsys: pytest.CaptureFixture
    ) -> None:
        legacy_invoice["supplier"]["taxId"] = "123-456"
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(legacy_invoice), encoding="utf-8")

        exit_code = main(["validate", str(path)])

        assert exit_code == 1
        out = capsys.readouterr().out
        assert "Invalid supplier TIN (tax ID) format" in out

    def test_writes_report(self, tmp_path: Path, legacy_file: Path) -> None:
        report_path = tmp_path / "report.json"

        main(["validate", str(legacy_file), "--report", str(report_path)])

        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert report["summary"]["totalInvoices"] == 1
        assert report["results"][0]["source"] == "legacy.json"
        assert report["results"][0]["result"]["isValid"] is True

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        exit_code = main(["validate", str(tmp_path / "missing.json")])

        assert exit_code == 1
        assert "Input file not found" in capsys.readouterr().out

    def test_invalid_json(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        exit_code = main(["validate", str(path)])

        assert exit_code == 1
        assert "Invalid JSON" in capsys.readouterr().out


class TestNormalizeCommand:
    """einvoice-qc normalize."""

    def test_prints_canonical_json(self, xml_file: Path, capsys: pytest.CaptureFixture) -> None:
        exit_code = main(["normalize", str(xml_file)])

        assert exit_code == 0
        invoice = json.loads(capsys.readouterr().out)
        assert invoice["irn"] == "INV-XML-0001"
        assert invoice["accounting_supplier_party"]["tin"] == "12345678-0001"

    def test_writes_output_file(self, tmp_path: Path, legacy_file: Path, capsys: pytest.CaptureFixture) -> None:
        output = tmp_path / "canonical.json"

        exit_code = main(["normalize", str(legacy_file), "--output", str(output)])

        assert exit_code == 0
        invoice = json.loads(output.read_text(encoding="utf-8"))
        assert invoice["invoice_type_code"] == "381"
        assert "defaulted to 381" in capsys.readouterr().err

    def test_conversion_failure(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = tmp_path / "broken.xml"
        path.write_text("<Invoice>", encoding="utf-8")

        exit_code = main(["normalize", str(path)])

        assert exit_code == 1
        assert "XML parsing failed" in capsys.readouterr().err


def test_codes_command(capsys: pytest.CaptureFixture) -> None:
    exit_code = main(["codes"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "380  Commercial Invoice" in out
    assert " 30  Credit Transfer" in out


def test_no_command_prints_help(capsys: pytest.CaptureFixture) -> None:
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out
