import json

import pytest

from verdict_proxy.core.normalizer import (
    LenientVerdictParser,
    PayloadShape,
    extract_candidate,
    normalize_response,
    strip_markdown_fence,
)
from verdict_proxy.core.types import Verdict


class TestExtractCandidate:
    """Payload shape detection follows a fixed priority order"""

    def test_response_field_wins(self):
        payload = {"response": "a", "content": "b", "message": {"content": "c"}}
        assert extract_candidate(payload) == (PayloadShape.RESPONSE, "a")

    def test_content_field(self):
        payload = {"content": "b", "message": {"content": "c"}}
        assert extract_candidate(payload) == (PayloadShape.CONTENT, "b")

    def test_nested_message_content(self):
        payload = {"message": {"role": "assistant", "content": "c"}}
        assert extract_candidate(payload) == (PayloadShape.MESSAGE_CONTENT, "c")

    def test_message_without_content(self):
        payload = {"message": "plain message"}
        assert extract_candidate(payload) == (PayloadShape.MESSAGE, "plain message")

    def test_message_object_without_content_is_used_whole(self):
        message = {"role": "assistant"}
        assert extract_candidate({"message": message}) == (PayloadShape.MESSAGE, message)

    def test_empty_response_falls_through(self):
        payload = {"response": "", "content": "b"}
        assert extract_candidate(payload) == (PayloadShape.CONTENT, "b")

    def test_raw_payload(self):
        payload = {"verdict": "FAIL", "rating": 3}
        assert extract_candidate(payload) == (PayloadShape.RAW, payload)

    @pytest.mark.parametrize("payload", ["text", 42, None, ["a"]])
    def test_non_dict_payload_is_raw(self, payload):
        assert extract_candidate(payload) == (PayloadShape.RAW, payload)


class TestStripMarkdownFence:
    def test_strips_json_fence(self):
        text = '```json\n{"a": 1}\n```'
        assert strip_markdown_fence(text) == '{"a": 1}'

    def test_surrounding_whitespace(self):
        text = '  \n```json   {"a": 1}  ```\n  '
        assert strip_markdown_fence(text) == '{"a": 1}'

    def test_unterminated_fence_is_left_trimmed(self):
        text = ' ```json\n{"a": 1}'
        assert strip_markdown_fence(text) == '```json\n{"a": 1}'


class TestLenientVerdictParser:
    parser = LenientVerdictParser()

    def test_each_field_optional(self):
        text = 'noise "rating": 4 more noise'
        assert self.parser.verdict(text) is None
        assert self.parser.rating(text) == 4
        assert self.parser.explanation(text) is None

    def test_case_insensitive_keys(self):
        text = '"Verdict": "FAIL", "RATING": 2, "Explanation": "blurry"'
        assert self.parser.parse(text) == Verdict("FAIL", 2, "blurry")

    def test_multiline_explanation(self):
        text = '{"verdict": "PASS", "rating": 8, "explanation": "line one\nline two", oops'
        assert self.parser.parse(text).explanation == "line one\nline two"

    def test_defaults(self):
        text = "nothing structured here"
        assert self.parser.parse(text) == Verdict("PASS", 0, text)


class TestNormalizeResponse:
    def test_plain_json_string(self):
        raw = '{"verdict":"PASS","rating":7,"explanation":"ok"}'
        assert normalize_response(raw).to_dict() == {"verdict": "PASS", "rating": 7, "explanation": "ok"}

    def test_fenced_json(self):
        raw = '```json\n{"verdict":"FAIL","rating":2,"explanation":"bad lighting"}\n```'
        assert normalize_response(raw).to_dict() == {"verdict": "FAIL", "rating": 2, "explanation": "bad lighting"}

    def test_fenced_json_inside_response_field(self):
        inner = '```json\n{"verdict":"FAIL","rating":2,"explanation":"bad lighting"}\n```'
        result = normalize_response({"model": "vision-v1", "response": inner, "done": True})
        assert result == Verdict("FAIL", 2, "bad lighting")

    def test_free_text_uses_defaults(self):
        raw = "Verdict: PASS, rating 9, because it looks great"
        assert normalize_response(raw).to_dict() == {"verdict": "PASS", "rating": 0, "explanation": raw}

    def test_out_of_range_rating_is_not_clamped(self):
        raw = '{"verdict": "PASS", "rating": 11, "explanation": "too good" trailing garbage'
        result = normalize_response(raw)
        assert result.rating == 11
        assert result.verdict == "PASS"

    def test_out_of_range_rating_in_valid_json(self):
        assert normalize_response('{"verdict": "PASS", "rating": 11, "explanation": "x"}').rating == 11

    def test_object_candidate_used_directly(self):
        payload = {"message": {"content": {"verdict": "FAIL", "rating": 1, "explanation": "dark"}}}
        assert normalize_response(payload) == Verdict("FAIL", 1, "dark")

    def test_arbitrary_verdict_category_kept(self):
        raw = json.dumps({"verdict": "MAYBE", "rating": 5, "explanation": "hmm"})
        assert normalize_response({"response": raw}).verdict == "MAYBE"

    def test_partial_object_gets_defaults(self):
        result = normalize_response({"response": '{"rating": "6"}'})
        assert result.verdict == "PASS"
        assert result.rating == 6
        assert result.explanation == '{"rating": "6"}'

    def test_non_object_json_falls_back(self):
        result = normalize_response({"response": "[1, 2, 3]"})
        assert result == Verdict("PASS", 0, "[1, 2, 3]")

    def test_raw_object_without_verdict_fields(self):
        payload = {"error": "boom", "details": "x"}
        result = normalize_response(payload)
        assert result.verdict == "PASS"
        assert result.rating == 0
        assert json.loads(result.explanation) == payload

    @pytest.mark.parametrize("payload", [None, 0, 3.5, [], "", "```json", {"response": None}, {"message": {}}])
    def test_never_raises(self, payload):
        result = normalize_response(payload)
        assert isinstance(result, Verdict)
        assert isinstance(result.rating, int)

    @pytest.mark.parametrize(
        "raw",
        [
            '{"verdict": "PASS", "rating": 1e999, "explanation": "overflow"}',
            '{"verdict": "PASS", "rating": NaN, "explanation": "nan"}',
            '{"verdict": "PASS", "rating": -Infinity, "explanation": "inf"}',
            '{"verdict": "PASS", "rating": "--5", "explanation": "dashes"}',
            '{"verdict": "PASS", "rating": "²", "explanation": "superscript"}',
            '"rating": ' + "9" * 5000,
            '{"rating": "' + "9" * 5000 + '"}',
            "[" * 100000,
        ],
    )
    def test_hostile_model_output_never_raises(self, raw):
        result = normalize_response({"response": raw})
        assert isinstance(result, Verdict)
        assert result.rating == 0

    def test_non_finite_rating_falls_back_to_field_extraction(self):
        result = normalize_response({"response": '{"verdict": "FAIL", "rating": NaN, "explanation": "odd"}'})
        assert (result.verdict, result.rating, result.explanation) == ("FAIL", 0, "odd")

    def test_finite_float_and_digit_string_ratings(self):
        assert normalize_response({"response": {"verdict": "PASS", "rating": 7.9}}).rating == 7
        assert normalize_response({"response": {"verdict": "PASS", "rating": " -3 "}}).rating == -3
