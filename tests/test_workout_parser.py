"""
Tests for workout text parsing.

Covers: code-fence stripping, JSON decoding of the model reply,
the regex fallback and fuzzy catalog matching.
"""

import pytest

from models import ParsedSet
from workout_parser import (
    PARSE_SYSTEM_PROMPT,
    decode_sets,
    find_exercise,
    match_exercises,
    parse_sets,
    regex_parse,
    strip_code_fences,
)

CATALOG = [
    {"id": "ex-bench", "name": "Bench Press"},
    {"id": "ex-squat", "name": "Squat"},
    {"id": "ex-dl", "name": "Deadlift"},
]

FENCED = '```json\n[{"exerciseName":"Bench Press","weight":80,"sets":3,"reps":10}]\n```'


# ─── strip_code_fences / decode_sets ────────────────────────


class TestDecode:

    def test_strips_json_fence(self):
        assert strip_code_fences(FENCED) == '[{"exerciseName":"Bench Press","weight":80,"sets":3,"reps":10}]'

    def test_strips_bare_fence(self):
        assert strip_code_fences("```\n[]\n```") == "[]"

    def test_plain_text_untouched(self):
        assert strip_code_fences("  [1]  ") == "[1]"

    def test_decodes_fenced_array(self):
        sets = decode_sets(FENCED)
        assert sets == [ParsedSet(exerciseName="Bench Press", weight=80, sets=3, reps=10)]

    def test_keeps_rpe(self):
        sets = decode_sets('[{"exerciseName":"Squat","weight":100,"sets":4,"reps":8,"rpe":8}]')
        assert sets[0].rpe == 8

    def test_whole_numbers_stay_integers(self):
        sets = decode_sets('[{"exerciseName":"Squat","weight":100.0,"sets":4,"reps":8,"rpe":8}]')
        dumped = sets[0].model_dump()
        assert type(dumped["weight"]) is int
        assert type(dumped["rpe"]) is int

    def test_fractional_weight_kept(self):
        sets = decode_sets('[{"exerciseName":"Curl","weight":12.5,"sets":3,"reps":12}]')
        assert sets[0].weight == 12.5

    @pytest.mark.parametrize("reply", [
        "Sure! Here is your workout.",
        '{"exerciseName":"Squat","weight":100,"sets":4,"reps":8}',
        '[{"exerciseName":"Squat"}]',
        "",
    ])
    def test_rejects_unusable_replies(self, reply):
        with pytest.raises(ValueError):
            decode_sets(reply)


# ─── regex_parse ────────────────────────────────────────────


class TestRegexParse:

    def test_two_exercises(self):
        sets = regex_parse("bench 80 3 10, squat 100 4 8")
        assert len(sets) == 2
        assert [s.exerciseName for s in sets] == ["bench", "squat"]
        assert [s.weight for s in sets] == [80, 100]
        assert [s.sets for s in sets] == [3, 4]
        assert [s.reps for s in sets] == [10, 8]

    def test_multi_word_name_and_decimal_weight(self):
        sets = regex_parse("incline bench press 62.5 3 12")
        assert sets[0].exerciseName == "incline bench press"
        assert sets[0].weight == 62.5

    def test_rpe_case_insensitive(self):
        sets = regex_parse("Deadlift 140 1 5 RPE 9")
        assert sets[0].rpe == 9

    def test_whole_weight_is_int(self):
        assert type(regex_parse("bench 80 3 10")[0].weight) is int

    def test_no_rpe_is_none(self):
        assert regex_parse("squat 100 4 8")[0].rpe is None

    def test_non_matching_text_skipped(self):
        assert regex_parse("felt great today, no lifting") == []


# ─── parse_sets ─────────────────────────────────────────────


class TestParseSets:

    def test_uses_model_reply_when_valid(self):
        sets = parse_sets(FENCED, "bench 80 3 10")
        assert sets[0].exerciseName == "Bench Press"

    def test_falls_back_to_original_input(self):
        sets = parse_sets("I could not parse that, sorry!", "bench 80 3 10, squat 100 4 8")
        assert [s.exerciseName for s in sets] == ["bench", "squat"]

    def test_fallback_ignores_malformed_reply_content(self):
        # the reply itself looks parseable by regex; only the input is used
        sets = parse_sets("row 50 3 12 [", "curl 15 3 12")
        assert [s.exerciseName for s in sets] == ["curl"]


# ─── catalog matching ───────────────────────────────────────


class TestMatching:

    def test_parsed_name_contained_in_catalog(self):
        assert find_exercise("bench", CATALOG)["id"] == "ex-bench"

    def test_catalog_name_contained_in_parsed(self):
        assert find_exercise("Bench Press Heavy", CATALOG)["id"] == "ex-bench"

    def test_case_insensitive(self):
        assert find_exercise("SQUAT", CATALOG)["id"] == "ex-squat"

    def test_first_match_wins(self):
        catalog = [{"id": 1, "name": "Front Squat"}, {"id": 2, "name": "Squat"}]
        assert find_exercise("squat", catalog)["id"] == 1

    def test_no_match(self):
        assert find_exercise("plank", CATALOG) is None

    def test_empty_name_never_matches(self):
        assert find_exercise("", CATALOG) is None

    def test_match_attaches_id_and_canonical_name(self):
        out = match_exercises(regex_parse("bench 80 3 10"), CATALOG)
        assert out == [{
            "exerciseName": "Bench Press",
            "weight": 80.0,
            "sets": 3,
            "reps": 10,
            "exerciseId": "ex-bench",
        }]

    def test_unmatched_keeps_parsed_name(self):
        out = match_exercises(regex_parse("plank 0 3 60"), CATALOG)
        assert out[0]["exerciseName"] == "plank"
        assert out[0]["exerciseId"] is None

    def test_empty_catalog(self):
        out = match_exercises(decode_sets(FENCED), [])
        assert out[0]["exerciseId"] is None
        assert out[0]["exerciseName"] == "Bench Press"


def test_prompt_demands_json_array():
    assert "JSON array" in PARSE_SYSTEM_PROMPT
    assert '"dl" or "dead" = "Deadlift"' in PARSE_SYSTEM_PROMPT
