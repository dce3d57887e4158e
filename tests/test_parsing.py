"""Tests for hibichidoku/processors/ai/parsing.py -- extract, then validate."""

import pytest

from hibichidoku.processors.ai.parsing import (
    LLMOutputError,
    NoJsonFoundError,
    SchemaMismatchError,
    extract_json,
    parse_dialogue,
    parse_enrichment,
    strip_code_fences,
)


class TestExtractJson:

    def test_strips_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_object_in_prose(self):
        assert extract_json('Sure! Here it is: {"a": [1, 2]} Enjoy.') == {"a": [1, 2]}

    def test_array_in_prose(self):
        assert extract_json('台本です\n[{"speaker": "ホスト", "text": "やあ"}]\n以上', kind="array") == [
            {"speaker": "ホスト", "text": "やあ"}
        ]

    def test_no_json(self):
        with pytest.raises(NoJsonFoundError):
            extract_json("I cannot help with that.")

    def test_empty(self):
        with pytest.raises(NoJsonFoundError):
            extract_json("   ")

    def test_broken_json(self):
        with pytest.raises(NoJsonFoundError):
            extract_json('{"a": 1,,}')

    def test_wrong_kind(self):
        with pytest.raises(NoJsonFoundError):
            extract_json('{"a": 1}', kind="array")

    def test_bracketed_note_after_array(self):
        raw = '[{"speaker": "ホスト", "text": "こんにちは"}]\n\n[注] 以上が台本です。'
        assert extract_json(raw, kind="array") == [{"speaker": "ホスト", "text": "こんにちは"}]

    def test_bracketed_label_before_array(self):
        raw = 'Here is the script [JSON]:\n[{"speaker": "ゲスト", "text": "どうも"}]'
        assert extract_json(raw, kind="array") == [{"speaker": "ゲスト", "text": "どうも"}]

    def test_braces_in_trailing_prose(self):
        assert extract_json('{"titleJa": "題"}\nNote: {see above}') == {"titleJa": "題"}

    def test_skips_unparsable_candidate(self):
        assert extract_json('{oops} then {"a": 1}') == {"a": 1}


class TestParseEnrichment:

    def test_aliases(self):
        payload = parse_enrichment('```json\n{"titleJa": "題", "tags": ["x"], "extra": 1}\n```')
        assert payload.title_ja == "題"
        assert payload.tags == ["x"]
        assert payload.summary_ja is None

    def test_schema_mismatch(self):
        with pytest.raises(SchemaMismatchError):
            parse_enrichment('{"tags": "not-a-list"}')

    def test_errors_share_base(self):
        assert issubclass(NoJsonFoundError, LLMOutputError)
        assert issubclass(SchemaMismatchError, LLMOutputError)

    def test_note_after_object(self):
        payload = parse_enrichment('{"titleJa": "題"}\nNote: {see above}')
        assert payload.title_ja == "題"


class TestParseDialogue:

    def test_turns(self):
        turns = parse_dialogue('[{"speaker": "ホスト", "text": "こんにちは"}, {"speaker": "ゲスト", "text": "どうも"}]')
        assert [t.speaker for t in turns] == ["ホスト", "ゲスト"]

    def test_missing_text(self):
        with pytest.raises(SchemaMismatchError):
            parse_dialogue('[{"speaker": "ホスト"}]')

    def test_prose_around_script(self):
        raw = (
            'Here is the script [JSON]:\n'
            '[{"speaker": "ホスト", "text": "こんにちは"}, {"speaker": "ゲスト", "text": "どうも"}]\n\n'
            '[注] 以上が台本です。'
        )
        turns = parse_dialogue(raw)
        assert [t.text for t in turns] == ["こんにちは", "どうも"]
