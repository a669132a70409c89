"""
Tests for the outline tree models and parsing
"""

import json
import logging

import pytest

from studycast.core.exceptions import ParseError
from studycast.models import IdeaKind, Outline, QuizQuestion, parse_outline, validate_outline


class TestParseOutline:

    def test_parse_json_text(self, sample_outline_dict):
        outline = parse_outline(json.dumps(sample_outline_dict))

        assert outline.subject == "Fotosintesi"
        assert [idea.title for idea in outline.ideas] == ["Fase luminosa", "Ciclo di Calvin"]
        assert outline.find("1.1.1").title == "Pigmenti"

    def test_parse_fenced_json(self, sample_outline_dict):
        text = "```json\n" + json.dumps(sample_outline_dict) + "\n```"
        assert len(parse_outline(text).ideas) == 2

    def test_kind_and_level_are_inferred(self, sample_outline):
        kinds = [(node.kind, node.level) for node in sample_outline.nodes()]
        assert kinds[:3] == [(IdeaKind.MAIN, 1), (IdeaKind.SUB, 2), (IdeaKind.NESTED, 3)]

    def test_camel_case_keys(self):
        data = {
            "subject": "Storia",
            "ideas": [{
                "id": 1,
                "title": "Roma",
                "subIdeas": [{
                    "id": "1.1",
                    "title": "Repubblica",
                    "nestedSubIdeas": [{"id": "1.1.1", "title": "Consoli"}],
                    "quizQuestions": [{"question": "Quanti consoli?", "options": ["1", "2"], "correctOptionIndex": 1}],
                }],
            }],
        }

        outline = parse_outline(data)

        assert outline.ideas[0].id == "1"
        sub = outline.ideas[0].sub_ideas[0]
        assert sub.nested_sub_ideas[0].title == "Consoli"
        assert sub.quiz_questions[0].correct_option_index == 1

    def test_null_subject_becomes_empty(self):
        assert parse_outline({"subject": None, "ideas": []}).subject == ""

    @pytest.mark.parametrize("payload", ["non è json", "[1, 2]", ""])
    def test_invalid_payloads(self, payload):
        with pytest.raises(ParseError):
            parse_outline(payload)

    def test_schema_mismatch_names_the_location(self):
        with pytest.raises(ParseError) as exc_info:
            parse_outline({"ideas": [{"id": "1"}]})
        assert "ideas.0.title" in exc_info.value.message

    def test_duplicate_sibling_titles(self):
        data = {"ideas": [{"id": "1", "title": "Roma"}, {"id": "2", "title": " roma "}]}
        with pytest.raises(ParseError, match="Duplicate title"):
            parse_outline(data)

    def test_duplicate_ids(self):
        data = {"ideas": [{"id": "1", "title": "A", "sub_ideas": [{"id": "1", "title": "B"}]}]}
        with pytest.raises(ParseError, match="Duplicate node id"):
            parse_outline(data)

    def test_same_title_under_different_parents_is_allowed(self):
        data = {"ideas": [
            {"id": "1", "title": "A", "sub_ideas": [{"id": "1.1", "title": "Cause"}]},
            {"id": "2", "title": "B", "sub_ideas": [{"id": "2.1", "title": "Cause"}]},
        ]}
        assert len(parse_outline(data).nodes()) == 4

    def test_count_mismatch_is_only_a_warning(self, sample_outline_dict, caplog):
        with caplog.at_level(logging.WARNING):
            outline = parse_outline(sample_outline_dict, expected_main_ideas=5)

        assert len(outline.ideas) == 2
        assert "main idea count" in caplog.text

    def test_outline_instance_is_copied(self, sample_outline):
        parsed = parse_outline(sample_outline)
        parsed.ideas[0].title = "Cambiato"
        assert sample_outline.ideas[0].title == "Fase luminosa"


class TestQuizQuestion:

    def test_index_out_of_range(self):
        with pytest.raises(ValueError):
            QuizQuestion(question="?", options=["a", "b"], correct_option_index=2)

    def test_legacy_answer_key(self):
        question = QuizQuestion.model_validate({"question": "?", "options": ["a", "b"], "correct_answer_index": 1})
        assert question.correct_option_index == 1


class TestOutlineTree:

    def test_walk_is_pre_order(self, sample_outline):
        assert [(node.id, depth) for node, depth in sample_outline.walk()] == [
            ("1", 1), ("1.1", 2), ("1.1.1", 3), ("1.2", 2), ("2", 1), ("2.1", 2),
        ]

    def test_clone_is_independent(self, sample_outline):
        copy = sample_outline.clone()
        copy.find("1.1.1").content = "modificato"
        assert sample_outline.find("1.1.1").content is None

    def test_to_dict_round_trips_and_drops_empty_fields(self, sample_outline):
        data = sample_outline.to_dict()

        assert "content" not in data["ideas"][0]
        assert data["ideas"][0]["kind"] == "main"
        assert Outline.model_validate(data) == sample_outline

    def test_validate_outline_catches_in_place_edits(self, sample_outline):
        sample_outline.ideas[1].title = "Fase luminosa"
        with pytest.raises(ParseError):
            validate_outline(sample_outline)

    def test_has_study_aids(self, sample_outline):
        node = sample_outline.find("2.1")
        assert not node.has_study_aids
        node.set_study_aids([], [QuizQuestion(question="?", options=["a"])])
        assert node.has_study_aids
