from pathlib import Path

import pytest

from conftest import FakeS3Client, make_image
from photos.cli import main, parse_args


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    path = tmp_path / "orig.jpg"
    path.write_bytes(make_image(640, 480))
    return path


def test_parse_derive_defaults(photo: Path, tmp_path: Path) -> None:
    args = parse_args(["derive", "--input", str(photo), "--output", str(tmp_path / "out")])
    assert args.command == "derive"
    assert args.thumb_size == 128
    assert args.formats == ""
    assert args.dims == ""


def test_derive_writes_artifacts(photo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out"

    code = main(["derive", "--input", str(photo), "--output", str(out), "--dims", "a:100,100", "--formats", "jpeg,png"])

    assert code == 0
    assert sorted(p.name for p in out.iterdir()) == ["a.jpeg", "a.png", "orig.jpeg", "thumbnail.jpeg"]
    assert capsys.readouterr().out.strip() == "Success"


def test_derive_bad_dims(photo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out"

    code = main(["derive", "--input", str(photo), "--output", str(out), "--dims", "1200-1090,818"])

    assert code == 1
    assert "invalid dimensions format" in capsys.readouterr().err
    assert not out.exists()


def test_derive_unsupported_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    css = tmp_path / "project.css"
    css.write_text("body { color: red; }")

    code = main(["derive", "--input", str(css), "--output", str(tmp_path / "out")])

    assert code == 1
    assert "Error processing image" in capsys.readouterr().err


def test_derive_missing_input(tmp_path: Path) -> None:
    assert main(["derive", "--input", str(tmp_path / "nope.jpg"), "--output", str(tmp_path / "out")]) == 1


def test_derive_partial_failure_exits_non_zero(photo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out"

    code = main(["derive", "--input", str(photo), "--output", str(out), "--dims", "a:100,100", "--formats", "jpeg,svg"])

    assert code == 1
    assert (out / "a.jpeg").exists()
    assert not (out / "a.svg").exists()
    assert "a.svg" in capsys.readouterr().err


def test_derive_rejects_bad_thumb_size(photo: Path, tmp_path: Path) -> None:
    assert main(["derive", "--input", str(photo), "--output", str(tmp_path), "--thumb-size", "0"]) == 2


def test_metadata(photo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["metadata", str(photo)]) == 0
    out = capsys.readouterr().out
    assert "format: JPEG" in out
    assert "size: 640x480" in out
    assert "orientation: 1" in out


def test_cleanup_dry_run(fake_s3: FakeS3Client, capsys: pytest.CaptureFixture[str]) -> None:
    fake_s3.add("static", "media/tags/bread/1200.webp", b"12345")

    code = main(["cleanup", "--dest", "static", "--prefix", "media/tags/bread", "--dry-run"])

    assert code == 0
    assert "key=media/tags/bread/1200.webp, size=5" in capsys.readouterr().out
    assert fake_s3.keys("static") == ["media/tags/bread/1200.webp"]


def test_cleanup_deletes(fake_s3: FakeS3Client) -> None:
    fake_s3.add("static", "media/tags/bread/1200.webp", b"12345")
    fake_s3.add("static", "media/tags/bread2/1200.webp", b"12345")

    assert main(["cleanup", "--dest", "static", "--prefix", "media/tags/bread/"]) == 0
    assert fake_s3.keys("static") == ["media/tags/bread2/1200.webp"]


def test_cleanup_refuses_empty_prefix(fake_s3: FakeS3Client) -> None:
    assert main(["cleanup", "--dest", "static", "--prefix", "/"]) == 2
