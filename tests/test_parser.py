"""
tests/test_parser.py — Unit Tests for the Recognition Parser
=============================================================

Tests the pure parsing pipeline (no I/O, no ledger).
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from kudos.engine.parser import (
    parse_recognition,
    parse_recognitions,
    parse_recognitions_with_groups,
    scan_units,
)
from kudos.engine.resolvers import StaticGroupResolver
from kudos.engine.state import LedgerConfig

from conftest import run_async

GIVER = "U0GIVER"


# ---------------------------------------------------------------------------
# Unit scanning
# ---------------------------------------------------------------------------
class TestScanUnits:
    def test_single_unit(self):
        units = scan_units("<@U1> +++ helped me debug #innovation")
        assert len(units) == 1
        assert [t.ident for t in units[0].targets] == ["U1"]
        assert units[0].points == 3
        assert units[0].reason == "helped me debug"
        assert units[0].tag == "innovation"

    def test_targets_separated_by_commas(self):
        units = scan_units("<@U1>, <@U2> + thanks")
        assert [t.ident for t in units[0].targets] == ["U1", "U2"]

    def test_text_between_target_and_plus_breaks_unit(self):
        assert scan_units("just mentioning <@U1> without recognition") == []
        assert scan_units("<@U1> said hi ++ to me") == []

    def test_plus_without_target_is_ignored(self):
        assert scan_units("C++ is great") == []

    def test_unit_stops_at_next_target(self):
        units = scan_units("<@U1> ++ helped <@U2> with the deploy #teamwork")
        assert len(units) == 1
        assert units[0].reason == "helped"
        assert units[0].tag is None

    def test_text_after_tag_is_ignored(self):
        units = scan_units("<@U1> ++ nice #teamwork and more words")
        assert units[0].reason == "nice"
        assert units[0].tag == "teamwork"

    def test_plus_inside_reason_is_text(self):
        units = scan_units("<@U1> + ported it to C++ #innovation")
        assert units[0].points == 1
        assert units[0].reason == "ported it to C++"


# ---------------------------------------------------------------------------
# Single-recognition mode
# ---------------------------------------------------------------------------
class TestParseRecognition:
    @pytest.mark.parametrize(
        "text",
        [
            "<@USER123> +++ helped me debug #innovation",
            "<@USER123>+++great work#teamwork",
            "<@USER123> +++ for designing the new UI #integrity",
            "<@USER123> ++ incomplete syntax #innovation",
            "<@USER123> + missing value tag",
        ],
    )
    def test_valid_formats(self, text, config):
        rec = parse_recognition(text, GIVER, config)
        assert rec is not None
        assert rec.receiver == "USER123"
        assert rec.giver == GIVER

    @pytest.mark.parametrize("plus_count", [1, 2, 3, 7])
    def test_points_equal_plus_count(self, plus_count, config):
        text = f"<@U1> {'+' * plus_count} shipped it #teamwork"
        rec = parse_recognition(text, GIVER, config)
        assert rec.points == plus_count

    def test_reason_and_value(self, config):
        rec = parse_recognition("<@U1> +++ helped me debug a critical issue #Innovation", GIVER, config)
        assert rec.reason == "helped me debug a critical issue"
        assert rec.value == "innovation"

    def test_no_tag_defaults_to_general(self, config):
        rec = parse_recognition("<@U1> + thanks for the review", GIVER, config)
        assert rec.value == "general"

    def test_explicit_general_tag_is_valid(self, config):
        rec = parse_recognition("<@U1> ++ #general", GIVER, config)
        assert rec is not None
        assert rec.value == "general"
        assert rec.reason == ""

    def test_unknown_tag_rejected(self, config):
        assert parse_recognition("<@U1> +++ helped me #nonexistentvalue", GIVER, config) is None

    def test_empty_reason_without_tag_rejected(self, config):
        assert parse_recognition("<@U1> +++", GIVER, config) is None

    def test_self_recognition_rejected(self, config):
        assert parse_recognition("<@U1> +++ me #innovation", "U1", config) is None

    def test_mention_without_plus_rejected(self, config):
        assert parse_recognition("just mentioning <@U1> without recognition", GIVER, config) is None

    def test_multi_target_unit_skipped(self, config):
        assert parse_recognition("<@U1> <@U2> ++ great work #teamwork", GIVER, config) is None

    def test_group_unit_skipped(self, config):
        assert parse_recognition("<!subteam^S1> ++ great work #teamwork", GIVER, config) is None

    def test_returns_first_valid_unit(self, config):
        rec = parse_recognition("<@U1> ++ #bogus <@U2> + thanks", GIVER, config)
        assert rec.receiver == "U2"


# ---------------------------------------------------------------------------
# Multi-recognition mode (sync)
# ---------------------------------------------------------------------------
class TestParseRecognitions:
    def test_multiple_targets_in_order(self, config):
        recs = parse_recognitions("<@A> <@B> ++ great work #teamwork", GIVER, config)
        assert [r.receiver for r in recs] == ["A", "B"]
        assert all(r.points == 2 and r.value == "teamwork" for r in recs)
        assert all(r.reason == "great work" for r in recs)

    def test_multiple_units(self, config):
        text = "<@USER123> ++ great work #teamwork <@USER456> +++ amazing effort #innovation"
        recs = parse_recognitions(text, "USER789", config)
        assert [(r.receiver, r.points, r.value) for r in recs] == [
            ("USER123", 2, "teamwork"),
            ("USER456", 3, "innovation"),
        ]

    def test_self_dropped_others_kept(self, config):
        recs = parse_recognitions("<@A> <@B> ++ pairing #teamwork", "A", config)
        assert [r.receiver for r in recs] == ["B"]

    def test_duplicate_target_awarded_once(self, config):
        recs = parse_recognitions("<@A> <@A> ++ pairing #teamwork", GIVER, config)
        assert [r.receiver for r in recs] == ["A"]

    def test_invalid_unit_does_not_affect_others(self, config):
        recs = parse_recognitions("<@A> ++ nice #bogus <@B> + thanks", GIVER, config)
        assert [r.receiver for r in recs] == ["B"]

    def test_groups_contribute_nothing(self, config):
        recs = parse_recognitions("<!subteam^S1> <@B> ++ launch #teamwork", GIVER, config)
        assert [r.receiver for r in recs] == ["B"]

    def test_shared_timestamp(self, config):
        recs = parse_recognitions("<@A> <@B> ++ pairing #teamwork", GIVER, config)
        assert recs[0].timestamp == recs[1].timestamp

    def test_custom_values_respected(self):
        cfg = LedgerConfig(values=["craft"])
        assert parse_recognitions("<@A> + #craft", GIVER, cfg)[0].value == "craft"
        assert parse_recognitions("<@A> + nice #teamwork", GIVER, cfg) == []

    def test_garbage_never_raises(self, config):
        for text in ["", "+++", "#teamwork", "<@", "<!subteam^>", "<@A> ++ #", "<<@A>>++x"]:
            parse_recognitions(text, GIVER, config)


# ---------------------------------------------------------------------------
# Multi-recognition mode with group expansion
# ---------------------------------------------------------------------------
class TestParseRecognitionsWithGroups:
    def test_group_expansion(self, config):
        resolver = StaticGroupResolver({"GROUP123": ["USER123", "USER456"]})
        recs = run_async(parse_recognitions_with_groups(
            "<!subteam^GROUP123> ++ great teamwork #teamwork", "USER789", config, resolver
        ))
        assert [r.receiver for r in recs] == ["USER123", "USER456"]
        assert all(r.points == 2 and r.value == "teamwork" for r in recs)

    def test_giver_inside_group_dropped(self, config):
        resolver = StaticGroupResolver({"S1": ["A", "B"]})
        recs = run_async(parse_recognitions_with_groups(
            "<!subteam^S1> + release #teamwork", "A", config, resolver
        ))
        assert [r.receiver for r in recs] == ["B"]

    def test_mixed_individual_and_group_order(self, config):
        resolver = StaticGroupResolver({"S1": ["B", "C"]})
        recs = run_async(parse_recognitions_with_groups(
            "<@A> <!subteam^S1> <@D> + launch #teamwork", GIVER, config, resolver
        ))
        assert [r.receiver for r in recs] == ["A", "B", "C", "D"]

    def test_group_resolved_once_per_message(self, config):
        resolver = AsyncMock()
        resolver.resolve_group_members.return_value = ["A"]
        run_async(parse_recognitions_with_groups(
            "<@&42> + one #teamwork <@&42> + two #teamwork", GIVER, config, resolver
        ))
        resolver.resolve_group_members.assert_awaited_once_with("42")

    def test_lookup_failure_yields_no_targets(self, config):
        resolver = AsyncMock()
        resolver.resolve_group_members.side_effect = RuntimeError("API down")
        recs = run_async(parse_recognitions_with_groups(
            "<!subteam^S1> <@B> ++ launch #teamwork", GIVER, config, resolver
        ))
        assert [r.receiver for r in recs] == ["B"]

    def test_unknown_tag_skips_lookup(self, config):
        resolver = AsyncMock()
        recs = run_async(parse_recognitions_with_groups(
            "<!subteam^S1> ++ launch #bogus", GIVER, config, resolver
        ))
        assert recs == []
        resolver.resolve_group_members.assert_not_awaited()
