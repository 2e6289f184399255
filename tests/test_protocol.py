"""
Tests for delegation directive parsing.
"""

import pytest

from expert_panel.experts import Expert, ExpertRole, Team
from expert_panel.orchestration.protocol import (
    MAX_DEPTH,
    extract_delegations,
    format_directive,
    strip_directives,
)


class TestExtractDelegations:
    def test_plain_text_passes_through(self, team):
        """Text without directives is returned unchanged."""
        cleaned, delegations = extract_delegations("All good.", 0, MAX_DEPTH, team, "a")
        assert cleaned == "All good."
        assert delegations == []

    def test_single_directive(self, team, bob):
        """A directive becomes a delegation and is stripped from the text."""
        raw = "Summary.\n:::DELEGATE:::Bob:::Review the contract:::"
        cleaned, delegations = extract_delegations(raw, 0, MAX_DEPTH, team, "a")

        assert cleaned == "Summary.\n"
        assert len(delegations) == 1
        assert delegations[0].target == bob
        assert delegations[0].instruction == "Review the contract"

    def test_multiple_directives_keep_order(self, team, bob, carol):
        """Every well-formed directive yields a delegation, in text order."""
        raw = (
            ":::DELEGATE:::Carol:::Check the stack::: middle "
            ":::DELEGATE:::Bob:::Check the license:::"
        )
        cleaned, delegations = extract_delegations(raw, 0, MAX_DEPTH, team, "a")

        assert [d.target for d in delegations] == [carol, bob]
        assert cleaned == " middle "

    def test_duplicates_are_kept(self, team, bob):
        """Two identical directives produce two independent delegations."""
        raw = format_directive("Bob", "same") * 2
        _, delegations = extract_delegations(raw, 0, MAX_DEPTH, team, "a")
        assert len(delegations) == 2
        assert all(d.target == bob for d in delegations)

    def test_name_match_is_case_insensitive_substring(self, team, carol):
        """Targets resolve by partial name, ignoring case."""
        _, delegations = extract_delegations(":::DELEGATE:::car:::x:::", 0, MAX_DEPTH, team, "a")
        assert delegations[0].target == carol

    def test_first_member_wins_on_ambiguous_name(self):
        """An ambiguous fragment resolves to the first matching teammate."""
        first = Expert(id="x", name="Ann Lee", role=ExpertRole.LEGAL, description="")
        second = Expert(id="y", name="Ann Wu", role=ExpertRole.FINANCE, description="")
        actor = Expert(id="z", name="Zed", role=ExpertRole.BUSINESS, description="")
        team = Team(members=[first, second, actor])

        _, delegations = extract_delegations(":::DELEGATE:::ann:::x:::", 0, MAX_DEPTH, team, "z")
        assert delegations[0].target == first

    def test_unknown_target_dropped(self, team):
        """A name matching nobody is dropped but still stripped."""
        dropped = []
        cleaned, delegations = extract_delegations(
            "Hi :::DELEGATE:::Zed:::x:::",
            0,
            MAX_DEPTH,
            team,
            "a",
            on_dropped=lambda name, reason: dropped.append((name, reason)),
        )
        assert cleaned == "Hi "
        assert delegations == []
        assert dropped == [("Zed", "unknown")]

    def test_self_delegation_dropped(self, team):
        """An expert cannot delegate to itself."""
        dropped = []
        _, delegations = extract_delegations(
            ":::DELEGATE:::Alice:::x:::",
            0,
            MAX_DEPTH,
            team,
            "a",
            on_dropped=lambda name, reason: dropped.append((name, reason)),
        )
        assert delegations == []
        assert dropped == [("Alice", "self")]

    def test_blank_target_dropped(self, team):
        """A whitespace-only target name resolves to nobody."""
        _, delegations = extract_delegations(":::DELEGATE::: :::x:::", 0, MAX_DEPTH, team, "a")
        assert delegations == []

    @pytest.mark.parametrize("depth", [MAX_DEPTH, MAX_DEPTH + 1])
    def test_depth_ceiling_suppresses_delegation(self, team, depth):
        """At the ceiling nothing is delegated, yet directives are stripped."""
        raw = "Done. :::DELEGATE:::Bob:::x:::"
        cleaned, delegations = extract_delegations(raw, depth, MAX_DEPTH, team, "a")
        assert cleaned == "Done. "
        assert delegations == []

    def test_delegation_allowed_below_ceiling(self, team):
        """Depth 1 may still delegate one more hop."""
        _, delegations = extract_delegations(":::DELEGATE:::Bob:::x:::", 1, MAX_DEPTH, team, "a")
        assert len(delegations) == 1

    def test_instruction_is_trimmed(self, team):
        """Surrounding whitespace in the instruction is removed."""
        _, delegations = extract_delegations(":::DELEGATE:::Bob:::  go  :::", 0, MAX_DEPTH, team, "a")
        assert delegations[0].instruction == "go"

    def test_malformed_directive_left_alone(self, team):
        """A directive missing its closing sentinel is not matched."""
        raw = ":::DELEGATE:::Bob:::unfinished"
        cleaned, delegations = extract_delegations(raw, 0, MAX_DEPTH, team, "a")
        assert cleaned == raw
        assert delegations == []

    def test_cleaned_text_is_idempotent(self, team):
        """Parsing the cleaned text again finds nothing more."""
        raw = "A :::DELEGATE:::Bob:::x::: B :::DELEGATE:::Zed:::y::: C"
        cleaned, _ = extract_delegations(raw, 0, MAX_DEPTH, team, "a")
        again, delegations = extract_delegations(cleaned, 0, MAX_DEPTH, team, "a")
        assert again == cleaned
        assert delegations == []

    @pytest.mark.parametrize("raw", [
        ":::DELE:::DELEGATE:::x:::y:::GATE:::Bob:::z:::",
        ":::DELEGATE:::Bo:::DELEGATE:::Zed:::q:::b:::z:::",
        ":::DEL:::DELEGATE:::a:::b:::EGATE:::B:::DELEGATE:::c:::d:::ob:::z:::",
    ])
    def test_spliced_directives_fully_stripped(self, team, raw):
        """Text joined around a removed directive never survives as a directive."""
        cleaned, _ = extract_delegations(raw, 0, MAX_DEPTH, team, "a")
        assert ":::DELEGATE:::" not in cleaned

        again, delegations = extract_delegations(cleaned, 0, MAX_DEPTH, team, "a")
        assert again == cleaned
        assert delegations == []

    def test_spliced_directive_is_not_delegated(self, team):
        """Only directives present in the original text produce follow-ups."""
        raw = ":::DELE:::DELEGATE:::x:::y:::GATE:::Bob:::z:::"
        _, delegations = extract_delegations(raw, 0, MAX_DEPTH, team, "a")
        assert delegations == []

    def test_spliced_directive_stripped_at_ceiling(self, team):
        raw = ":::DELE:::DELEGATE:::x:::y:::GATE:::Bob:::z:::"
        cleaned, delegations = extract_delegations(raw, MAX_DEPTH, MAX_DEPTH, team, "a")
        assert cleaned == ""
        assert delegations == []


class TestDirectiveHelpers:
    def test_format_directive_is_parseable(self, team, carol):
        """A formatted directive parses back to its target."""
        _, delegations = extract_delegations(format_directive("Carol", "scale it"), 0, MAX_DEPTH, team, "a")
        assert delegations[0].target == carol
        assert delegations[0].instruction == "scale it"

    def test_strip_directives(self):
        assert strip_directives("x:::DELEGATE:::A:::b:::y") == "xy"
