import pytest

from dls_app.engine.recipe_model import ConversionOptions, load_options


def test_default_options_are_valid():
    assert ConversionOptions().validate() == []


def test_validate_reports_bad_values():
    options = ConversionOptions(id=5, parser="just_a_module", export_layout="diagonal")

    errs = options.validate()

    assert "Analysis id must be a string" in errs
    assert "Parser must be given as 'module:attribute'" in errs
    assert any("Export layout" in err for err in errs)


def test_load_options_from_yaml(tmp_path):
    path = tmp_path / "options.yaml"
    path.write_text(
        "id: run-42\nlabel: Latex\nparser: zmes_parser:parse\nexport_layout: wide\nunused: 1\n",
        encoding="utf-8",
    )

    options = load_options(path)

    assert options.id == "run-42"
    assert options.label == "Latex"
    assert options.parser == "zmes_parser:parse"
    assert options.export_layout == "wide"
    assert options.analysis_kwargs() == {"id": "run-42", "label": "Latex"}


def test_load_options_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_options(path) == ConversionOptions()


def test_load_options_rejects_non_mapping_and_bad_yaml(tmp_path):
    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    broken = tmp_path / "broken.yaml"
    broken.write_text("id: [unterminated\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_options(listing)
    with pytest.raises(ValueError):
        load_options(broken)
