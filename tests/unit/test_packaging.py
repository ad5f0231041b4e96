#!/usr/bin/env python3
"""
Unit tests for the distribution metadata.
"""
from pathlib import Path

import pytest

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


@pytest.mark.unit
def test_long_description_is_not_a_design_document():
    metadata = PYPROJECT.read_text(encoding="utf-8")

    assert "SPEC_FULL.md" not in metadata
    assert "DESIGN.md" not in metadata
