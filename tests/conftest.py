from pathlib import Path

import pytest

from kt_style_lint.config import build_registry
from kt_style_lint.models import LintConfig


SAMPLES = Path(__file__).resolve().parent / "samples"


@pytest.fixture
def registry():
    return build_registry(LintConfig())


@pytest.fixture
def clean_sample() -> Path:
    return SAMPLES / "clean.kt"
