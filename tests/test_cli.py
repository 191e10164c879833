import json

from click.testing import CliRunner

from film_ruler.cli import main
from synthetic import RulerTarget, write_target


def test_cli_writes_rasters_and_json(tmp_path):
    images = [
        write_target(RulerTarget(), tmp_path / "in" / "first.png"),
        write_target(RulerTarget(), tmp_path / "in" / "second.png"),
    ]
    out = tmp_path / "out"

    result = CliRunner().invoke(
        main,
        [*map(str, images), "--output-dir", str(out), "--pixels-per-mm", "20", "--seed", "5", "--log"],
    )

    assert result.exit_code == 0, result.output
    for stem in ("first", "second"):
        assert (out / f"{stem}_edge.png").exists()
        assert (out / f"{stem}_overlay.png").exists()
        payload = json.loads((out / f"{stem}.json").read_text())
        assert payload["source_name"] == f"{stem}.png"
        assert payload["width"] == 1200
        assert "edge_raster" not in payload
        assert payload["logs"]
    assert "[tick repair]" in result.output
    assert "Processed 2 images: 2 success, 0 failed" in result.output


def test_cli_requires_images():
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 1


def test_cli_reports_undecodable_image(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"garbage")
    result = CliRunner().invoke(main, [str(bad), "--output-dir", str(tmp_path / "out")])
    assert result.exit_code == 1
    assert "Error processing" in result.output


def test_cli_rejects_bad_concurrency(tmp_path):
    image = write_target(RulerTarget(), tmp_path / "t.png")
    result = CliRunner().invoke(main, [str(image), "--max-concurrency", "0"])
    assert result.exit_code == 1


def test_cli_refuses_inputs_sharing_a_stem(tmp_path):
    first = write_target(RulerTarget(), tmp_path / "a" / "scan.png")
    second = write_target(RulerTarget(), tmp_path / "b" / "scan.png")
    out = tmp_path / "out"
    result = CliRunner().invoke(main, [str(first), str(second), "--output-dir", str(out)])
    assert result.exit_code == 1
    assert "share the output name 'scan'" in result.output
    assert not (out / "scan.json").exists()
