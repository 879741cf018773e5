"""Tests for hook outcome normalization."""

import pytest
from starlette.responses import Response

from restforge.hooks import ABORT, ACTION_AVOIDED, Abort, has_override, payload_or_abort


class TestPayloadOrAbort:
    def test_mapping_passes_through_as_dict(self):
        assert payload_or_abort({"title": "x"}) == {"title": "x"}

    @pytest.mark.parametrize("outcome", [None, {}, False])
    def test_empty_outcomes_abort(self, outcome):
        assert payload_or_abort(outcome) is ABORT

    def test_explicit_abort_keeps_description(self):
        outcome = payload_or_abort(Abort("Locked"))
        assert outcome == Abort("Locked")

    def test_default_description(self):
        assert ABORT.description == ACTION_AVOIDED == "Action avoided"

    def test_non_mapping_raises(self):
        with pytest.raises(TypeError, match="mapping or Abort"):
            payload_or_abort(["title"])


class TestHasOverride:
    @pytest.mark.parametrize("outcome", [None, {}, [], "", False, 0])
    def test_empty_values_do_not_override(self, outcome):
        assert not has_override(outcome)

    @pytest.mark.parametrize("outcome", [{"ok": 1}, [1], "done", Response(status_code=418)])
    def test_non_empty_values_override(self, outcome):
        assert has_override(outcome)
