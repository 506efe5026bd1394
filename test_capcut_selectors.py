"""
Editor selector tests: text-matched XPath, defaults and YAML overrides.

Usage:
    pytest test_capcut_selectors.py
"""

import pytest

from agents.capcut_selectors import EditorSelectors, load_selectors, text_xpath


# ============================================================
# Text XPath
# ============================================================

def test_text_xpath_matches_any_phrase():
    assert text_xpath(["Export", "Download"]) == (
        "xpath=//button[contains(., 'Export') or contains(., 'Download')]"
    )


def test_text_xpath_ignore_case_folds_every_phrase():
    selector = text_xpath(["Upload", "Import"], ignore_case=True)

    assert selector == (
        "xpath=//button[contains(translate(., 'UPLOAD', 'upload'), 'upload') "
        "or contains(translate(., 'IMPORT', 'import'), 'import')]"
    )


def test_upload_trigger_is_case_insensitive():
    assert EditorSelectors().upload_trigger == text_xpath(["Upload", "Import"], ignore_case=True)
    assert "translate(., 'IMPORT', 'import')" in EditorSelectors().upload_trigger


def test_text_xpath_quotes_apostrophes():
    assert text_xpath(["Don't"], tag="span") == """xpath=//span[contains(., "Don't")]"""


# ============================================================
# Overrides
# ============================================================

def test_missing_override_file_uses_defaults(tmp_path):
    assert load_selectors(tmp_path / "nope.yaml") == EditorSelectors()


def test_override_file_replaces_named_selectors(tmp_path):
    path = tmp_path / "sel.yaml"
    path.write_text("selectors:\n  export_button: '#export'\n")

    selectors = load_selectors(path)

    assert selectors.export_button == "#export"
    assert selectors.file_input == EditorSelectors().file_input


def test_unknown_override_key_rejected(tmp_path):
    path = tmp_path / "sel.yaml"
    path.write_text("selectors:\n  exprot_button: '#export'\n")

    with pytest.raises(ValueError, match="exprot_button"):
        load_selectors(path)
