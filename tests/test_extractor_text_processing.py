"""Tests for extractor.text_processing module."""

from llm_visibility.extractor.text_processing import (
    Sentence,
    count_words,
    split_into_sentences,
)


class TestSplitIntoSentences:
    def test_simple_response(self):
        sentences = split_into_sentences("Acme is the best. Other Co is fine. Acme again.")

        assert [s.text for s in sentences] == [
            "Acme is the best.",
            "Other Co is fine.",
            "Acme again.",
        ]
        assert [s.index for s in sentences] == [0, 1, 2]
        assert [s.word_count for s in sentences] == [4, 4, 2]

    def test_line_breaks_end_sentences(self):
        sentences = split_into_sentences("Top picks\nAcme is great\nGlobex is fine")

        assert [s.text for s in sentences] == ["Top picks", "Acme is great", "Globex is fine"]

    def test_list_markers_and_emphasis_stripped(self):
        text = "## Best cards\n1. **Acme** is great\n- Globex is ok\n* `Initech` works"

        assert [s.text for s in split_into_sentences(text)] == [
            "Best cards",
            "Acme is great",
            "Globex is ok",
            "Initech works",
        ]

    def test_decimals_and_domains_not_split(self):
        sentences = split_into_sentences("Rates start at 3.5% today. Warmly.io is new.")

        assert len(sentences) == 2
        assert sentences[0].text == "Rates start at 3.5% today."
        assert sentences[1].text == "Warmly.io is new."

    def test_multiple_terminators(self):
        sentences = split_into_sentences("Really?! Yes. Wow!")

        assert [s.text for s in sentences] == ["Really?!", "Yes.", "Wow!"]

    def test_punctuation_only_fragments_dropped(self):
        sentences = split_into_sentences("Acme is great.\n...\n\nGlobex too.")

        assert [s.text for s in sentences] == ["Acme is great.", "Globex too."]
        assert [s.index for s in sentences] == [0, 1]

    def test_empty_input(self):
        assert split_into_sentences(None) == []
        assert split_into_sentences("") == []
        assert split_into_sentences("  \n\t ") == []

    def test_sentence_is_frozen(self):
        sentence = split_into_sentences("Acme.")[0]

        assert sentence == Sentence(text="Acme.", index=0, word_count=1)


class TestCountWords:
    def test_whitespace_tokens(self):
        assert count_words("Acme  is\tthe best.") == 4

    def test_empty(self):
        assert count_words(None) == 0
        assert count_words("") == 0
