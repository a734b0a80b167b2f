"""Tests for word pattern compilation."""
import pytest
from prompt_audit.patterns import (
    Boundary,
    ConfigurationError,
    compile_word,
    replace_word,
    trim_non_alphanumeric,
)


class TestCompileWord:
    """Tests for substitution and boundary handling."""

    def test_plain_match(self):
        assert compile_word("nude").search("a nude figure")

    def test_case_insensitive(self):
        assert compile_word("nude").search("A NUDE figure")

    def test_leet_substitution(self):
        """Common character swaps collapse onto the canonical word."""
        p = compile_word("sexy")
        assert p.search("a s3xy pose")
        assert p.search("a zexy pose")
        assert compile_word("pedophile").search("p3doph1le")
        assert compile_word("porn").search("p0rn")

    def test_phrase_tolerates_separators(self):
        p = compile_word("child porn")
        assert p.search("child porn")
        assert p.search("child-porn")
        assert p.search("ch1ld_p0rn")
        assert p.search("childporn")

    def test_no_substring_match(self):
        """A banned token inside an unrelated word is not a match."""
        assert compile_word("ass").search("classic") is None
        assert compile_word("cp").search("a cpu cooler") is None

    def test_pluralize(self):
        p = compile_word("kid", pluralize=True)
        assert p.search("two kids")
        assert p.search("two kidz")
        assert compile_word("kid").search("two kids") is None

    def test_prompt_syntax_boundary(self):
        """Blocklist boundaries include prompt weighting punctuation."""
        p = compile_word("loli", boundary=Boundary.PROMPT_SYNTAX)
        assert p.search("foo:loli:1.3")
        assert p.search("(loli:1.2)")
        assert p.search("[loli|cat]")
        assert p.search("loli")
        assert p.search("xloli") is None
        assert p.search("lolita") is None

    def test_bracket_entries_are_raw_regex(self):
        p = compile_word("h[ae]llo")
        assert p.search("hallo there")
        assert p.search("hello there")
        assert p.search("hall0 there") is None

    def test_special_characters_are_literal(self):
        p = compile_word("c.p")
        assert p.search("a c.p b")
        assert p.search("a cxp b") is None

    def test_cached(self):
        assert compile_word("nude") is compile_word("nude")
        assert compile_word("nude") is not compile_word("nude", pluralize=True)

    def test_reports_original_word(self):
        assert compile_word("Child Porn").word == "Child Porn"

    @pytest.mark.parametrize("word", ["", "   ", None])
    def test_empty_entry_rejected(self, word):
        with pytest.raises(ConfigurationError):
            compile_word(word)

    def test_unbalanced_fragment_rejected(self):
        with pytest.raises(ConfigurationError):
            compile_word("[unclosed")


class TestHelpers:
    """Tests for trimming and single-word replacement."""

    def test_trim(self):
        assert trim_non_alphanumeric("  (word)! ") == "word"
        assert trim_non_alphanumeric("") == ""
        assert trim_non_alphanumeric(None) == ""

    def test_replace_word(self):
        assert replace_word("a nude figure", "nude", "[x]") == "a [x] figure"

    def test_replace_word_first_occurrence_only(self):
        assert replace_word("nude, nude", "nude") == ", nude"

    def test_replace_word_no_match(self):
        assert replace_word("a classic", "ass") == "a classic"
        assert replace_word("", "ass") == ""
