"""
Note template settings: defaults, validation, persistence and the change
channel.
"""

import logging

import pytest

from clinic_gateway.app.errors import ValidationError
from clinic_gateway.app.services import note_templates, record_service
from clinic_gateway.app.services.note_templates import TemplateSettingsChannel
from clinic_gateway.tests.auth_helpers import (
    create_jwt_headers,
    create_owner_headers,
    create_practitioner_headers,
)
from clinic_gateway.tests.test_helpers import TENANT_A, TENANT_B, TEST_OWNER

CUSTOM = {
    "id": "intake",
    "label": "Intake Summary",
    "fields": [{"key": "presenting_problem", "label": "Presenting problem"}, {"key": "history"}],
}


def _ids(templates):
    return [template["id"] for template in templates]


class TestDefaults:
    def test_all_builtins_enabled(self):
        templates = note_templates.get_templates(TENANT_A).data

        assert _ids(templates) == ["free", "soap", "birp", "dap", "pirp", "girp"]
        assert all(t["is_enabled"] and not t["is_custom"] for t in templates)

    def test_default_copies_are_independent(self):
        first = note_templates.default_templates()
        first[0]["fields"].append({"key": "extra"})

        assert note_templates.default_templates()[0]["fields"] == [
            {"key": "content", "label": "Session Notes"}
        ]


class TestNormalize:
    def test_builtin_fields_cannot_be_changed(self):
        submitted = [{"id": "soap", "is_enabled": False, "fields": [{"key": "anything"}]}]

        normalized = note_templates.normalize_templates(submitted)

        soap = next(t for t in normalized if t["id"] == "soap")
        assert soap["is_enabled"] is False
        assert [f["key"] for f in soap["fields"]] == ["subjective", "objective", "assessment", "plan"]
        assert len(normalized) == len(note_templates.DEFAULT_TEMPLATES)

    def test_custom_template_kept(self):
        normalized = note_templates.normalize_templates([CUSTOM])

        intake = normalized[-1]
        assert intake["is_custom"] is True
        assert [f["label"] for f in intake["fields"]] == ["Presenting problem", "history"]

    @pytest.mark.parametrize(
        "templates",
        [
            [{"id": ""}],
            [CUSTOM, CUSTOM],
            [{"id": "intake", "label": "", "fields": [{"key": "a"}]}],
            [{"id": "intake", "label": "Intake", "fields": []}],
            [{"id": "intake", "label": "Intake", "fields": [{"key": "a"}, {"key": "a"}]}],
        ],
    )
    def test_invalid_templates(self, templates):
        with pytest.raises(ValidationError):
            note_templates.normalize_templates(templates)


class TestNoteContent:
    def test_fills_missing_keys(self):
        assert note_templates.validate_note_content(["a", "b"], {"a": "x"}) == {"a": "x", "b": ""}

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            note_templates.validate_note_content(["a"], {"z": "x"})

    def test_rejects_non_text(self):
        with pytest.raises(ValidationError):
            note_templates.validate_note_content(["a"], {"a": 5})

    def test_disabled_template_has_no_keys(self):
        templates = note_templates.normalize_templates([{"id": "dap", "is_enabled": False}])

        with pytest.raises(ValidationError):
            note_templates.template_field_keys(templates, "dap")


class TestTemplateSettingsChannel:
    def test_subscribe_and_unsubscribe(self):
        channel = TemplateSettingsChannel()
        received = []

        unsubscribe = channel.subscribe(lambda tenant_id, templates: received.append(tenant_id))
        assert channel.subscriber_count == 1

        channel.publish(TENANT_A, [])
        unsubscribe()
        channel.publish(TENANT_B, [])

        assert received == [TENANT_A]
        assert channel.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self, caplog):
        channel = TemplateSettingsChannel()
        received = []

        def broken(tenant_id, templates):
            raise RuntimeError("listener crashed")

        channel.subscribe(broken)
        channel.subscribe(lambda tenant_id, templates: received.append(templates))

        with caplog.at_level(logging.ERROR):
            channel.publish(TENANT_A, [{"id": "free"}])

        assert received == [[{"id": "free"}]]
        assert "Template settings subscriber failed" in caplog.text

    def test_subscribers_get_copies(self):
        channel = TemplateSettingsChannel()
        original = [{"id": "free"}]

        channel.subscribe(lambda tenant_id, templates: templates.clear())
        channel.publish(TENANT_A, original)

        assert original == [{"id": "free"}]


class TestUpdateTemplates:
    def test_update_persists_and_publishes(self):
        received = []
        unsubscribe = note_templates.get_template_channel().subscribe(
            lambda tenant_id, templates: received.append((tenant_id, _ids(templates)))
        )
        try:
            result = note_templates.update_templates(TENANT_A, [CUSTOM], TEST_OWNER["sub"])
        finally:
            unsubscribe()

        assert result.ok
        assert _ids(note_templates.get_templates(TENANT_A).data)[-1] == "intake"
        assert received == [(TENANT_A, _ids(result.data))]
        assert _ids(note_templates.get_templates(TENANT_B).data)[-1] == "girp"

    def test_enabled_only(self):
        note_templates.update_templates(
            TENANT_A, [{"id": "birp", "is_enabled": False}], TEST_OWNER["sub"]
        )

        enabled = note_templates.get_enabled_templates(TENANT_A).data

        assert "birp" not in _ids(enabled)
        assert "soap" in _ids(enabled)

    def test_custom_template_usable_for_notes(self):
        note_templates.update_templates(TENANT_A, [CUSTOM], TEST_OWNER["sub"])
        client = record_service.create_client(TENANT_A, {"name": "Jamie"}, TEST_OWNER["sub"]).data
        session = record_service.create_session(
            TENANT_A,
            {"client_id": client["id"], "session_date": "2026-03-02", "session_type": "intake"},
            TEST_OWNER["sub"],
        ).data

        result = record_service.create_session_note(
            TENANT_A,
            {
                "session_id": session["id"],
                "client_id": client["id"],
                "template_type": "intake",
                "content": {"history": "None reported"},
            },
            TEST_OWNER["sub"],
        )

        assert result.ok
        assert result.data["content"] == {"presenting_problem": "", "history": "None reported"}


class TestTemplateEndpoints:
    def test_practitioner_reads_but_cannot_change(self, client, practice):
        headers = create_jwt_headers(practice["tenant_id"], role="practitioner")

        assert client.get("/note-templates", headers=headers).status_code == 200
        response = client.put("/note-templates", json={"templates": [CUSTOM]}, headers=headers)
        assert response.status_code == 403

    def test_owner_updates(self, client):
        response = client.put(
            "/note-templates", json={"templates": [CUSTOM]}, headers=create_owner_headers(TENANT_A)
        )

        assert response.status_code == 200
        assert response.json()[-1]["id"] == "intake"

    def test_reserved_configuration_key(self, client):
        response = client.put(
            "/configurations/note_templates",
            json={"value": []},
            headers=create_owner_headers(TENANT_A),
        )

        assert response.status_code == 422

    def test_unseeded_practitioner_denied(self, client):
        response = client.get("/note-templates", headers=create_practitioner_headers(TENANT_A))

        assert response.status_code == 403
