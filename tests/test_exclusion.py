"""Tests for the exclusion rules."""

from originality.config import (
    ExclusionReason, ExclusionSettings, MatchSource, MatchType, PlagiarismConfig,
    PlagiarismMatch
)
from originality.exclusion import (
    ExclusionEngine, apply_exclusions, find_reference_section, should_exclude_match
)


def make_match(full_text, passage, similarity=100, last=False):
    start = full_text.rindex(passage) if last else full_text.index(passage)
    return PlagiarismMatch(
        id=f"match-0-{start}",
        text=passage,
        start_offset=start,
        end_offset=start + len(passage),
        similarity=similarity,
        word_count=len(passage.split()),
        type=MatchType.EXACT,
        source=MatchSource(title="Somewhere"),
    )


def config_with(**exclusions):
    return PlagiarismConfig(exclusions=ExclusionSettings(**exclusions))


QUOTED_TEXT = 'He wrote "the quick brown fox jumps over" yesterday.'
CITED_TEXT = "Prior work shows that deep networks generalize surprisingly well (Smith, 2023)."
PLAIN_TEXT = "Our own experiments reveal an unexpected pattern in the measurements."


class TestPriority:

    def test_quoted(self):
        match = make_match(QUOTED_TEXT, "the quick brown fox jumps over")

        decision = should_exclude_match(match, QUOTED_TEXT)

        assert decision.excluded
        assert decision.reason == ExclusionReason.QUOTED

    def test_quoted_beats_custom_phrase(self):
        match = make_match(QUOTED_TEXT, "the quick brown fox jumps over")
        config = config_with(custom_phrases=("quick brown",))

        assert should_exclude_match(match, QUOTED_TEXT, config).reason == ExclusionReason.QUOTED

    def test_unquoted_repeat_of_quoted_passage(self):
        passage = "the quick brown fox jumps over"
        text = (
            f'Early on we read "{passage}" (Smith, 2023). ' + "filler " * 40 +
            f"Later in my own words: {passage} and so on."
        )

        assert should_exclude_match(make_match(text, passage), text).reason == ExclusionReason.QUOTED
        assert not should_exclude_match(make_match(text, passage, last=True), text).excluded

    def test_match_overhanging_quote_not_quoted(self):
        match = make_match(QUOTED_TEXT, "the quick brown fox jumps over\" yesterday")

        assert should_exclude_match(match, QUOTED_TEXT).reason != ExclusionReason.QUOTED

    def test_custom_phrase_when_quotes_disabled(self):
        match = make_match(QUOTED_TEXT, "the quick brown fox jumps over")
        config = config_with(quotes=False, custom_phrases=("Quick Brown",))

        assert should_exclude_match(match, QUOTED_TEXT, config).reason == ExclusionReason.USER_EXCLUDED

    def test_cited(self):
        match = make_match(CITED_TEXT, "deep networks generalize surprisingly well")

        assert should_exclude_match(match, CITED_TEXT).reason == ExclusionReason.CITED

    def test_cited_before_common_phrase(self):
        text = "In this study we replicate the original protocol exactly [4]."
        match = make_match(text, "In this study we replicate the original protocol")

        assert should_exclude_match(match, text).reason == ExclusionReason.CITED

    def test_not_excluded(self):
        match = make_match(PLAIN_TEXT, "experiments reveal an unexpected pattern")

        decision = should_exclude_match(match, PLAIN_TEXT)

        assert not decision.excluded
        assert decision.reason is None


class TestCitations:

    def test_distant_citation(self):
        text = "deep networks generalize surprisingly well " + "lorem " * 40 + "(Smith, 2023)"
        match = make_match(text, "deep networks generalize surprisingly well")

        assert not should_exclude_match(match, text).excluded

    def test_uncited_repeat_of_cited_passage(self):
        passage = "deep networks generalize surprisingly well"
        text = (
            f"Prior work shows that {passage} (Smith, 2023). " + "filler " * 40 +
            f"Later in my own words: {passage} and so on."
        )

        assert should_exclude_match(make_match(text, passage), text).reason == ExclusionReason.CITED
        decision = should_exclude_match(make_match(text, passage, last=True), text)

        assert not decision.excluded
        assert decision.reason is None

    def test_citations_disabled(self):
        match = make_match(CITED_TEXT, "deep networks generalize surprisingly well")

        assert not should_exclude_match(match, CITED_TEXT, config_with(citations=False)).excluded


class TestCommonPhrases:

    def test_exact_phrase(self):
        text = "We discuss this in the context of modern teaching."
        match = make_match(text, "in the context of")

        assert should_exclude_match(match, text).reason == ExclusionReason.COMMON_PHRASE

    def test_match_containing_phrase(self):
        text = "These results in particular were striking to everyone."
        match = make_match(text, "These results in particular were striking")

        assert should_exclude_match(match, text).reason == ExclusionReason.COMMON_PHRASE

    def test_normalized_before_comparison(self):
        text = "Further research is needed, clearly."
        match = make_match(text, "Further research is needed,")

        assert should_exclude_match(match, text).reason == ExclusionReason.COMMON_PHRASE

    def test_common_phrases_disabled(self):
        text = "We discuss this in the context of modern teaching."
        match = make_match(text, "in the context of")

        assert not should_exclude_match(match, text, config_with(common_phrases=False)).excluded


class TestReferences:

    TEXT = (
        "Body text of the essay goes here.\n\n"
        "References\n"
        "Smith J. The theory of everything explained simply. Journal 2020."
    )

    def test_reference_section_start(self):
        assert find_reference_section(self.TEXT) == self.TEXT.index("References") + len("References")
        assert find_reference_section("No such heading in this text.") is None

    def test_match_in_reference_section(self):
        match = make_match(self.TEXT, "The theory of everything explained simply")

        assert should_exclude_match(match, self.TEXT).reason == ExclusionReason.REFERENCE

    def test_references_disabled(self):
        match = make_match(self.TEXT, "The theory of everything explained simply")

        assert not should_exclude_match(match, self.TEXT, config_with(references=False)).excluded

    def test_body_text_not_a_reference(self):
        match = make_match(self.TEXT, "Body text of the essay goes")

        assert not should_exclude_match(match, self.TEXT).excluded


class TestApplyExclusions:

    def test_flags_without_dropping(self):
        text = QUOTED_TEXT + " " + PLAIN_TEXT
        quoted = make_match(text, "the quick brown fox jumps over")
        plain = make_match(text, "experiments reveal an unexpected pattern")

        result = apply_exclusions([quoted, plain], text, PlagiarismConfig())

        assert len(result) == 2
        assert result[0].excluded and result[0].exclusion_reason == ExclusionReason.QUOTED
        assert not result[1].excluded and result[1].exclusion_reason is None

    def test_returns_new_records(self):
        match = make_match(QUOTED_TEXT, "the quick brown fox jumps over")

        result = apply_exclusions([match], QUOTED_TEXT)

        assert result[0] is not match
        assert match.excluded is False
        assert result[0].id == match.id
        assert result[0].text == match.text

    def test_engine_reused_for_many_matches(self):
        engine = ExclusionEngine(CITED_TEXT, PlagiarismConfig())
        match = make_match(CITED_TEXT, "deep networks generalize surprisingly well")

        assert engine.decide(match).reason == ExclusionReason.CITED
        assert [m.exclusion_reason for m in engine.apply([match, match])] == [
            ExclusionReason.CITED, ExclusionReason.CITED
        ]

    def test_empty(self):
        assert apply_exclusions([], "", PlagiarismConfig()) == []


def test_all_exclusions_disabled():
    config = config_with(quotes=False, citations=False, references=False, common_phrases=False)
    match = make_match(QUOTED_TEXT, "the quick brown fox jumps over")

    assert not should_exclude_match(match, QUOTED_TEXT, config).excluded
