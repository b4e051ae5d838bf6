import pytest

from photos.exceptions import ConfigError
from photos.variants.constants import ImageFormat
from photos.variants.plan import build_plan, parse_boxes, parse_format, parse_formats
from photos.variants.schemas import Dimensions


def test_default_plan_has_twelve_variants() -> None:
    plan = build_plan()
    assert len(plan.boxes) == 6
    assert plan.formats == (ImageFormat.JPEG, ImageFormat.WEBP)
    assert len(plan.specs) == 12
    assert len({spec.filename for spec in plan.specs}) == 12


def test_default_boxes_are_exact() -> None:
    boxes = {named.label: named.box for named in build_plan("", "").boxes}
    assert boxes == {
        "1200": Dimensions(1090, 818),
        "992": Dimensions(910, 683),
        "768": Dimensions(670, 503),
        "576": Dimensions(515, 386),
        "408": Dimensions(400, 300),
        "320": Dimensions(310, 225),
    }


def test_single_box_single_format() -> None:
    specs = build_plan("1200:1090,818", "jpeg").specs
    assert len(specs) == 1
    assert specs[0].filename == "1200.jpeg"
    assert specs[0].box == Dimensions(1090, 818)


def test_multiple_boxes_keep_order() -> None:
    boxes = parse_boxes("small:100,50; large : 800,600")
    assert [b.label for b in boxes] == ["small", "large"]
    assert boxes[1].box == Dimensions(800, 600)


@pytest.mark.parametrize(
    "text",
    [
        "1200-1090,818",        # missing colon
        "1200:1090",            # missing height
        "1200:1090,818,10",     # too many sides
        "a:1:10,10",            # too many colons
        "1200:wide,818",        # not a number
        "1200:1090,0",          # not positive
        "1200:-5,10",
        ":10,10",               # empty label
        "1200:1090,818;",       # trailing empty entry
    ],
)
def test_malformed_boxes(text: str) -> None:
    with pytest.raises(ConfigError):
        parse_boxes(text)


@pytest.mark.parametrize("label", ["orig", "thumbnail"])
def test_reserved_labels_rejected(label: str) -> None:
    with pytest.raises(ConfigError, match=label):
        parse_boxes(f"{label}:100,100")


def test_duplicate_labels_rejected() -> None:
    with pytest.raises(ConfigError, match="duplicate"):
        parse_boxes("a:100,100;a:200,200")


def test_unknown_format_named_in_error() -> None:
    with pytest.raises(ConfigError, match="xyz"):
        build_plan(None, "jpeg,xyz")


def test_formats_case_insensitive_with_alias() -> None:
    assert parse_formats("JPG, Png,webp") == (ImageFormat.JPEG, ImageFormat.PNG, ImageFormat.WEBP)


def test_duplicate_formats_collapse() -> None:
    assert parse_formats("jpeg,jpg,JPEG") == (ImageFormat.JPEG,)


def test_unknown_member_is_not_a_format() -> None:
    with pytest.raises(ConfigError):
        parse_format("unknown")


def test_every_supported_token_parses() -> None:
    tokens = ["jpeg", "png", "webp", "tiff", "gif", "pdf", "svg", "magick", "heif", "avif"]
    assert [parse_format(t).extension for t in tokens] == tokens
