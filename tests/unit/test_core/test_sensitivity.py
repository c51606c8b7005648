"""Unit tests for sensitivity classification."""

import pytest

from envlock.core.sensitivity import SECURE_DEFAULT, Sensitivity, effective_sensitivity, sensitivity_label


class TestEffectiveSensitivity:
    """Tests for effective_sensitivity()."""

    @pytest.mark.parametrize("default", [None, True, False])
    def test_explicit_annotation_wins(self, default: bool | None) -> None:
        """An explicit annotation ignores the document default."""
        assert effective_sensitivity(Sensitivity.SENSITIVE, default) is True
        assert effective_sensitivity(Sensitivity.NOT_SENSITIVE, default) is False

    def test_inherits_document_default(self) -> None:
        """Unannotated fields take the document default."""
        assert effective_sensitivity(Sensitivity.INHERITED, False) is False
        assert effective_sensitivity(Sensitivity.INHERITED, True) is True

    def test_secure_default_without_document_default(self) -> None:
        """Without any default, fields are treated as sensitive."""
        assert SECURE_DEFAULT is True
        assert effective_sensitivity(Sensitivity.INHERITED, None) is True


def test_sensitivity_label() -> None:
    """Report labels read secret/public."""
    assert sensitivity_label(True) == "secret"
    assert sensitivity_label(False) == "public"
