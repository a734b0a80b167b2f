"""Tests for word list loading and the compiled registry."""
import copy
import json
import pytest
from prompt_audit.lexicon import (
    DEFAULT_WORD_LISTS,
    Lexicon,
    composed_nouns,
    load_word_lists,
    validate_word_lists,
)
from prompt_audit.patterns import ConfigurationError


@pytest.fixture
def word_lists():
    return copy.deepcopy(DEFAULT_WORD_LISTS)


class TestLoadWordLists:
    def test_defaults(self):
        assert load_word_lists() == DEFAULT_WORD_LISTS

    def test_defaults_not_shared(self):
        lists = load_word_lists()
        lists["poi"].append("someone")
        assert "someone" not in DEFAULT_WORD_LISTS["poi"]

    def test_file_overrides_categories(self, tmp_path):
        path = tmp_path / "lists.json"
        path.write_text(json.dumps({"poi": ["jane doe"]}), encoding="utf-8")
        lists = load_word_lists(str(path))
        assert lists["poi"] == ["jane doe"]
        assert lists["nsfw"] == DEFAULT_WORD_LISTS["nsfw"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "lists.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_word_lists(str(path))

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "lists.json"
        path.write_text(json.dumps(["loli"]), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_word_lists(str(path))

    def test_empty_entry(self, tmp_path):
        path = tmp_path / "lists.json"
        path.write_text(json.dumps({"blocked": ["loli", ""]}), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_word_lists(str(path))


class TestValidate:
    def test_missing_category(self, word_lists):
        del word_lists["poi"]
        with pytest.raises(ConfigurationError, match="poi"):
            validate_word_lists(word_lists)

    def test_category_not_a_list(self, word_lists):
        word_lists["nsfw"] = "nude"
        with pytest.raises(ConfigurationError):
            validate_word_lists(word_lists)

    def test_tags_must_be_mapping(self, word_lists):
        word_lists["tags"] = ["anime"]
        with pytest.raises(ConfigurationError):
            validate_word_lists(word_lists)

    def test_bad_tag_entry(self, word_lists):
        word_lists["tags"]["anime"] = ["anime", 3]
        with pytest.raises(ConfigurationError, match="tags.anime"):
            validate_word_lists(word_lists)


class TestLexiconBuild:
    def test_categories(self, lexicon):
        assert len(lexicon.nsfw) == len(DEFAULT_WORD_LISTS["nsfw"])
        assert set(lexicon.tags) == set(DEFAULT_WORD_LISTS["tags"])

    def test_tags_read_only(self, lexicon):
        with pytest.raises(TypeError):
            lexicon.tags["new"] = lexicon.nsfw

    def test_blocklists_use_prompt_syntax_boundaries(self, lexicon):
        assert lexicon.blocked.in_prompt("foo:loli:1.3") == "loli"
        assert lexicon.blocked_nsfw.in_prompt("(underage:1.2)") == "underage"

    def test_young_nouns_pluralized(self, lexicon):
        assert lexicon.young_nouns.in_prompt("two kids") == "kid"

    def test_composed_nouns(self, lexicon):
        """Young adjectives crossed with partial nouns catch compound phrases."""
        assert lexicon.young_nouns.in_prompt("her tiny daughter")
        assert lexicon.young_nouns.in_prompt("a young girl")
        assert lexicon.young_nouns.in_prompt("her daughter") is False

    def test_composed_noun_entries(self):
        entries = composed_nouns(["tiny", "young"], ["girl"])
        assert len(entries) == 2
        assert entries[0].startswith("tiny") and entries[0].endswith("girl")

    def test_malformed_entry_fails_fast(self, word_lists):
        word_lists["youngNoun"].append("[unbalanced")
        with pytest.raises(ConfigurationError):
            Lexicon.build(word_lists)

    def test_blocked_words(self, lexicon):
        assert lexicon.blocked_words == DEFAULT_WORD_LISTS["blockedNsfw"]
