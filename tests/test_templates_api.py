"""Template CRUD, validation, search and the public share link."""

import pytest

from quizbuilder.exceptions import ValidationError
from quizbuilder.schemas import TemplateDraft
from quizbuilder.services.template_service import validate_template_draft


def _payload(**overrides):
    data = {
        "title": "Capitals",
        "description": "Geography warm-up",
        "kind": "quiz",
        "questions": [
            {
                "text": "Capital of France?",
                "type": "single_choice",
                "options": ["Berlin", "Paris"],
                "correct_option_index": 1,
                "points": 1,
            },
            {
                "text": "Which are in Europe?",
                "type": "multi_choice",
                "options": ["Lisbon", "Lima", "Oslo"],
                "correct_option_indexes": [2, 0, 2],
                "points": 2,
            },
            {"text": "Why do capitals move?", "type": "free_text", "points": 3},
        ],
    }
    data.update(overrides)
    return data


class TestTemplateValidation:
    def test_valid_draft_is_cleaned(self):
        clean = validate_template_draft(TemplateDraft.model_validate(_payload()))
        assert clean.questions[1].correct_option_indexes == [0, 2]
        assert clean.questions[2].options == []
        assert clean.duration_minutes is None

    def test_tags_are_stripped_from_text(self):
        clean = validate_template_draft(
            TemplateDraft.model_validate(_payload(title="<b>Capitals</b>"))
        )
        assert clean.title == "Capitals"

    def test_plain_text_symbols_are_kept(self):
        clean = validate_template_draft(
            TemplateDraft.model_validate(_payload(title="Q&A: x < 5 <i>now</i>"))
        )
        assert clean.title == "Q&A: x < 5 now"

    def test_missing_title(self):
        with pytest.raises(ValidationError) as exc:
            validate_template_draft(TemplateDraft.model_validate(_payload(title="  ")))
        assert "title" in exc.value.errors

    def test_test_kind_needs_positive_duration(self):
        with pytest.raises(ValidationError) as exc:
            validate_template_draft(TemplateDraft.model_validate(_payload(kind="test", duration_minutes=0)))
        assert "duration_minutes" in exc.value.errors

    def test_duration_dropped_for_non_tests(self):
        clean = validate_template_draft(TemplateDraft.model_validate(_payload(duration_minutes=30)))
        assert clean.duration_minutes is None

    @pytest.mark.parametrize(
        "question, field",
        [
            ({"text": "Q", "type": "single_choice", "options": ["a"], "points": 1}, "correct_option_index"),
            (
                {"text": "Q", "type": "single_choice", "options": ["a"], "correct_option_index": 1},
                "correct_option_index",
            ),
            ({"text": "Q", "type": "multi_choice", "options": ["a", "b"]}, "correct_option_indexes"),
            (
                {"text": "Q", "type": "multi_choice", "options": ["a", "b"], "correct_option_indexes": [0, 5]},
                "correct_option_indexes",
            ),
            ({"text": "Q", "type": "single_choice", "options": [], "correct_option_index": 0}, "options"),
            ({"text": "", "type": "free_text"}, "text"),
            ({"text": "Q", "type": "free_text", "points": 0}, "points"),
        ],
    )
    def test_invalid_questions(self, question, field):
        with pytest.raises(ValidationError) as exc:
            validate_template_draft(TemplateDraft.model_validate(_payload(questions=[question])))
        assert f"questions[0].{field}" in exc.value.errors


class TestTemplateApi:
    def test_requires_login(self, client):
        assert client.get("/templates").status_code == 401
        assert client.post("/templates", json=_payload()).status_code == 401

    def test_create_and_list(self, owner_client, owner_user):
        response = owner_client.post("/templates", json=_payload())
        assert response.status_code == 201
        body = response.json()
        assert body["owner_id"] == owner_user.id
        assert len(body["id"]) == 32

        listed = owner_client.get("/templates").json()
        assert [t["id"] for t in listed] == [body["id"]]

    def test_invalid_template_returns_field_errors(self, owner_client):
        response = owner_client.post("/templates", json=_payload(title=""))
        assert response.status_code == 400
        assert "title" in response.json()["errors"]

    def test_other_user_cannot_read_update_or_delete(self, other_client, mixed_template):
        url = f"/templates/{mixed_template.id}"
        assert other_client.get(url).status_code == 403
        assert other_client.put(url, json=_payload()).status_code == 403
        assert other_client.delete(url).status_code == 403

    def test_unknown_template_is_404(self, owner_client):
        assert owner_client.get("/templates/doesnotexist").status_code == 404

    def test_update_replaces_content(self, owner_client, mixed_template):
        response = owner_client.put(
            f"/templates/{mixed_template.id}",
            json=_payload(title="Renamed", kind="test", duration_minutes=15),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Renamed"
        assert body["kind"] == "test"
        assert body["duration_minutes"] == 15
        assert len(body["questions"]) == 3

    def test_delete(self, owner_client, mixed_template):
        assert owner_client.delete(f"/templates/{mixed_template.id}").status_code == 200
        assert owner_client.get(f"/templates/{mixed_template.id}").status_code == 404

    def test_admin_can_read_any_template(self, admin_client, mixed_template):
        assert admin_client.get(f"/templates/{mixed_template.id}").status_code == 200

    def test_search_is_case_insensitive_and_scoped(self, owner_client, other_client, mixed_template):
        found = owner_client.get("/templates/search", params={"q": "bio"}).json()
        assert [t["id"] for t in found] == [mixed_template.id]

        assert owner_client.get("/templates/search", params={"q": ""}).json() == []
        assert other_client.get("/templates/search", params={"q": "bio"}).json() == []

    def test_ampersands_and_angle_brackets_round_trip(self, owner_client):
        questions = _payload()["questions"]
        questions[0]["options"] = ["Yes & no", "No"]
        response = owner_client.post("/templates", json=_payload(title="Q&A: x < 5", questions=questions))
        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Q&A: x < 5"
        assert body["questions"][0]["options"] == ["Yes & no", "No"]

        stored = owner_client.get(f"/templates/{body['id']}").json()
        assert stored["title"] == "Q&A: x < 5"

        found = owner_client.get("/templates/search", params={"q": "x < 5"}).json()
        assert [t["id"] for t in found] == [body["id"]]


class TestShareLink:
    def test_shared_template_is_public_without_answer_key(self, client, choice_template):
        response = client.get(f"/templates/share/{choice_template.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Arithmetic"
        assert body["duration_minutes"] == 10
        for question in body["questions"]:
            assert "correct_option_index" not in question
            assert "correct_option_indexes" not in question
            assert question["options"]

    def test_unknown_share_id(self, client):
        assert client.get("/templates/share/nope").status_code == 404
