"""Smoke tests for the card-lookup CLI (lookup, identify)."""

import logging
from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from card_lookup import cli as cli_module
from card_lookup.ai.ocr_base import MockTextRecognizer
from card_lookup.cli import app
from card_lookup.lookup.pipeline import LookupPipeline
from tests.conftest import FakeResolver

pytestmark = [pytest.mark.fast]

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    saved = root.handlers[:]
    level = root.level
    yield
    for h in root.handlers[:]:
        root.removeHandler(h)
    for h in saved:
        root.addHandler(h)
    root.setLevel(level)


@pytest.fixture
def resolver(monkeypatch):
    resolver = FakeResolver()
    recognizer = MockTextRecognizer("Lightning Bolt")
    monkeypatch.setattr(cli_module, "build_pipeline", lambda cfg: LookupPipeline(recognizer, resolver))
    return resolver


@pytest.fixture
def screenshot(tmp_path) -> Path:
    path = tmp_path / "frame.png"
    Image.new("RGB", (1024, 768), (20, 20, 20)).save(path)
    return path


def test_lookup_by_name_prints_card(resolver):
    result = runner.invoke(app, ["lookup", "Lightning Bolt", "--no-prompt"])
    assert result.exit_code == 0, result.output
    assert "Lightning Bolt" in result.output
    assert "Instant" in result.output
    assert resolver.calls == ["Lightning Bolt"]


def test_lookup_not_found_exits_nonzero(resolver):
    result = runner.invoke(app, ["lookup", "Xyzzy", "--no-prompt"])
    assert result.exit_code == 1
    assert 'Card not found: "Xyzzy"' in result.output


def test_lookup_manual_entry_after_no_match(resolver):
    result = runner.invoke(app, ["lookup", "Xyzzy"], input="Lightning Bolt\n")
    assert result.exit_code == 0, result.output
    assert "detected: Xyzzy" in result.output
    assert resolver.calls == ["Xyzzy", "Lightning Bolt"]


def test_lookup_blank_manual_entry_quits(resolver):
    result = runner.invoke(app, ["lookup", "Xyzzy"], input="\n")
    assert result.exit_code == 1
    assert resolver.calls == ["Xyzzy"]


def test_identify_reads_region_from_image(resolver, screenshot):
    result = runner.invoke(app, ["identify", str(screenshot), "--x", "512", "--y", "384", "--no-prompt"])
    assert result.exit_code == 0, result.output
    assert "Looking up card..." in result.output
    assert "Lightning Bolt" in result.output


def test_identify_missing_image_exits(resolver, tmp_path):
    result = runner.invoke(app, ["identify", str(tmp_path / "nope.png"), "--x", "1", "--y", "1"])
    assert result.exit_code == 1
    assert "Cannot open image" in result.output


def test_identify_debug_saves_capture(resolver, screenshot, tmp_path):
    out = tmp_path / "capture.png"
    result = runner.invoke(
        app,
        ["identify", str(screenshot), "--x", "512", "--y", "384", "--debug", "--save-capture", str(out)],
    )
    assert result.exit_code == 0, result.output
    assert 'OCR Result: "Lightning Bolt"' in result.output
    with Image.open(out) as img:
        assert img.size == (250, 120)


def test_missing_config_file_exits(resolver, tmp_path):
    result = runner.invoke(app, ["lookup", "Opt", "--config", str(tmp_path / "missing.yml")])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_dump_log_writes_flight_log(resolver, tmp_path):
    cfg = tmp_path / "card_lookup.yml"
    cfg.write_text(f"forensics_dir: {tmp_path / 'forensics'}\nlog_level: WARNING\n")
    result = runner.invoke(app, ["lookup", "Lightning Bolt", "--no-prompt", "--dump-log", "--config", str(cfg)])
    assert result.exit_code == 0, result.output
    assert "Flight log written to" in result.output
    dumps = list((tmp_path / "forensics").glob("cli_*.log"))
    assert len(dumps) == 1
