"""
Tests for session snapshots and the storage adapters.
"""

import json
import re

import pytest

from consultation.persistence import (
    FileSessionStorage,
    InMemorySessionStorage,
    SupabaseSessionStorage,
    create_storage,
)
from consultation.state import SNAPSHOT_VERSION, SnapshotError, WizardSession, generate_session_id


class TestSessionId:
    def test_format(self):
        session_id = generate_session_id()
        assert re.fullmatch(r"wizard-\d{13}-[0-9a-z]{9}", session_id)

    def test_purpose_prefix(self):
        assert generate_session_id("generation").startswith("generation-")

    def test_ids_differ(self):
        assert generate_session_id() != generate_session_id()


class TestSnapshot:
    def test_round_trip(self):
        session = WizardSession(current_step_index=4)
        session.store.update({"commander": "Kenrith", "powerLevel": 2})

        restored = WizardSession.from_json(session.to_json())

        assert restored.session_id == session.session_id
        assert restored.current_step_index == 4
        assert restored.is_complete is False
        assert restored.record == session.record
        assert restored.store.version == session.store.version

    def test_snapshot_is_versioned(self):
        payload = json.loads(WizardSession().to_json())
        assert payload["version"] == SNAPSHOT_VERSION
        assert "session" in payload

    def test_missing_keys_fall_back_to_defaults(self):
        restored = WizardSession.from_json(json.dumps({"version": SNAPSHOT_VERSION, "session": {}}))
        assert restored.current_step_index == 0
        assert restored.record.building_full_deck is True

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            json.dumps({"version": 99, "session": {}}),
            json.dumps({"session": {}}),
            json.dumps({"version": SNAPSHOT_VERSION, "session": "nope"}),
            json.dumps({"version": SNAPSHOT_VERSION, "session": {"consultation": "garbage"}}),
            json.dumps({"version": SNAPSHOT_VERSION, "session": {"consultation": None}}),
            json.dumps({"version": SNAPSHOT_VERSION, "session": {"consultation": {"data": []}}}),
            json.dumps({"version": SNAPSHOT_VERSION, "session": {"consultation": {"data": {"powerLevel": 9}}}}),
        ],
    )
    def test_corrupt_snapshots_raise(self, raw):
        with pytest.raises(SnapshotError):
            WizardSession.from_json(raw)


class TestInMemoryStorage:
    def test_load_save_clear(self):
        storage = InMemorySessionStorage("k")
        assert storage.load() is None
        storage.save("data")
        assert storage.load() == "data"
        storage.clear()
        assert storage.load() is None

    def test_shared_backing(self):
        backing = {}
        InMemorySessionStorage("a", backing=backing).save("one")
        assert InMemorySessionStorage("a", backing=backing).load() == "one"
        assert InMemorySessionStorage("b", backing=backing).load() is None


class TestFileStorage:
    def test_load_save_clear(self, tmp_path):
        storage = FileSessionStorage("deck-wizard-state:client/1", directory=tmp_path / "sessions")
        assert storage.load() is None

        storage.save('{"version": 1}')
        assert storage.path.parent == tmp_path / "sessions"
        assert "/" not in storage.path.name
        assert storage.load() == '{"version": 1}'

        storage.clear()
        assert storage.load() is None
        storage.clear()  # clearing twice is fine


class TestSupabaseStorage:
    def test_load_empty(self, mock_supabase):
        storage = SupabaseSessionStorage("key-1", mock_supabase)
        assert storage.load() is None
        mock_supabase.table.assert_called_with("wizard_sessions")

    def test_load_row(self, mock_supabase):
        mock_supabase.table.return_value.execute.return_value.data = [{"state": "snapshot"}]
        storage = SupabaseSessionStorage("key-1", mock_supabase)
        assert storage.load() == "snapshot"

    def test_save_upserts_by_key(self, mock_supabase):
        storage = SupabaseSessionStorage("key-1", mock_supabase)
        storage.save("snapshot")

        row = mock_supabase.table.return_value.upsert.call_args[0][0]
        assert row["storage_key"] == "key-1"
        assert row["state"] == "snapshot"
        assert "updated_at" in row

    def test_clear_deletes_by_key(self, mock_supabase):
        storage = SupabaseSessionStorage("key-1", mock_supabase)
        storage.clear()

        table = mock_supabase.table.return_value
        table.delete.assert_called_once()
        table.eq.assert_called_with("storage_key", "key-1")


class TestCreateStorage:
    def test_backends(self, tmp_path, mock_supabase):
        assert isinstance(create_storage("k"), InMemorySessionStorage)
        assert isinstance(create_storage("k", "file", directory=tmp_path), FileSessionStorage)
        assert isinstance(create_storage("k", "supabase", client=mock_supabase), SupabaseSessionStorage)

    def test_supabase_needs_client(self):
        with pytest.raises(ValueError):
            create_storage("k", "supabase")

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_storage("k", "redis")
