#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

import sys

from validate_yaml import collect_files, load_schema, main, validate_vehicle_file

VALID = """
vehicle:
  licensePlate: AB-123-C
  make: Toyota
  model: Corolla
  trackingMode: auto_calculate

registrations:
  - id: m1
    type: meterstand
    timestamp: 1735718400000
    odometerKm: 45210
  - id: t1
    type: trip
    timestamp: 1736931600000
    startOdometerKm: 45300
    endOdometerKm: 45342
    purpose: business
    odometerCalculated: true
    calculationBasedOn:
      previousMeterstandId: m1
      interpolationMethod: linear
"""


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_has_expected_structure(self):
        schema = load_schema()
        assert isinstance(schema, dict)
        assert "vehicle" in schema["properties"]
        assert "registrations" in schema["properties"]


class TestValidateVehicleFile:
    """Tests for validate_vehicle_file function."""

    def test_valid_file_returns_no_errors(self, tmp_path):
        path = tmp_path / "valid.yaml"
        path.write_text(VALID)
        assert validate_vehicle_file(path, load_schema()) == []

    def test_unknown_purpose_returns_errors(self, tmp_path):
        """A trip purpose outside the enum is a schema error."""
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID.replace("purpose: business", "purpose: holiday"))
        errors = validate_vehicle_file(path, load_schema())
        assert any("Schema validation" in e for e in errors)

    def test_missing_plate_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("vehicle:\n  make: Toyota\n")
        errors = validate_vehicle_file(path, load_schema())
        assert any("licensePlate" in e for e in errors)

    def test_reports_every_error(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("vehicle:\n  licensePlate: X\n  trackingMode: gps\n  color: red\n")
        errors = validate_vehicle_file(path, load_schema())
        assert len(errors) == 2

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("vehicle:\n  licensePlate: [unclosed\n")
        errors = validate_vehicle_file(path, load_schema())
        assert any("YAML" in e for e in errors)

    def test_nonexistent_file_returns_errors(self, tmp_path):
        errors = validate_vehicle_file(tmp_path / "does_not_exist.yaml", load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Error")


class TestMain:
    """Tests for the validate_yaml entry point."""

    def test_all_valid(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "corolla.yaml").write_text(VALID)
        monkeypatch.setattr(sys, "argv", ["validate_yaml", str(tmp_path)])
        assert main() == 0
        assert "OK: corolla.yaml" in capsys.readouterr().out

    def test_invalid_file_fails(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "broken.yaml").write_text("vehicle: {}\n")
        monkeypatch.setattr(sys, "argv", ["validate_yaml", str(tmp_path)])
        assert main() == 1
        assert "FAIL: broken.yaml" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["validate_yaml", str(tmp_path / "nope")])
        assert main() == 1

    def test_single_file_target(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "corolla.yaml"
        path.write_text(VALID)
        monkeypatch.setattr(sys, "argv", ["validate_yaml", str(path)])
        assert main() == 0
        assert "1/1 files valid" in capsys.readouterr().out


class TestCollectFiles:
    """Tests for collect_files."""

    def test_expands_directories(self, tmp_path):
        (tmp_path / "a.yaml").write_text("")
        (tmp_path / "b.yml").write_text("")
        (tmp_path / "notes.txt").write_text("")
        names = [p.name for p in collect_files([tmp_path])]
        assert names == ["a.yaml", "b.yml"]
