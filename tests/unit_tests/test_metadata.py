"""
Unit tests for the metadata synchronizer.
"""

import itertools
import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from errors import (
    OperationError,
    OptimisticConcurrencyError,
    RemoteReadError,
    SnapshotWriteError,
    ValidationError,
)
from metadata import MetadataSynchronizer, apply_key, validate_update_params
from models import (
    MetadataItem,
    MetadataStore,
    OperationErrorEntry,
    OperationResult,
    Project,
)


def make_store(fingerprint="F1", **pairs):
    return MetadataStore(
        fingerprint=fingerprint,
        items=[MetadataItem(key=k, value=v) for k, v in pairs.items()],
    )


class TestApplyKey(unittest.TestCase):
    """Test the pure key update."""

    def test_existing_key_changes_only_its_value(self):
        """Test length, order and other values are preserved."""
        store = make_store(a="1", b="2", c="3")
        for key in ("a", "b", "c"):
            updated = apply_key(store, key, "new")
            self.assertEqual(len(updated.items), 3)
            self.assertEqual([i.key for i in updated.items], ["a", "b", "c"])
            for before, after in zip(store.items, updated.items):
                expected = "new" if before.key == key else before.value
                self.assertEqual(after.value, expected)

    def test_absent_key_is_appended(self):
        """Test a new key lands at the end and nothing else moves."""
        store = make_store(a="1", b="2")
        updated = apply_key(store, "z", "26")
        self.assertEqual(len(updated.items), len(store.items) + 1)
        self.assertEqual(updated.items[:-1], store.items)
        self.assertEqual(updated.items[-1], MetadataItem("z", "26"))

    def test_input_store_is_not_modified(self):
        """Test the store that was read stays intact."""
        store = make_store(a="1")
        apply_key(store, "a", "2")
        apply_key(store, "b", "2")
        self.assertEqual(store, make_store(a="1"))

    def test_fingerprint_is_carried(self):
        """Test the read fingerprint travels with the update."""
        self.assertEqual(apply_key(make_store("XYZ"), "k", "v").fingerprint, "XYZ")

    def test_duplicate_key_updates_last_occurrence(self):
        """Test a store holding a key twice has its last entry updated."""
        store = MetadataStore(
            fingerprint="F",
            items=[MetadataItem("a", "1"), MetadataItem("a", "2")],
        )
        updated = apply_key(store, "a", "3")
        self.assertEqual([i.value for i in updated.items], ["1", "3"])


class TestValidateUpdateParams(unittest.TestCase):
    """Test parameter validation."""

    def test_reports_exactly_the_blank_fields(self):
        """Test every blank combination reports exactly its blank fields."""
        names = ("GOOGLE_PROJECT_ID", "-key", "-value")
        for blanks in itertools.product([True, False], repeat=3):
            args = ["" if blank else "set" for blank in blanks]
            errors = validate_update_params(*args)
            expected = [n for n, blank in zip(names, blanks) if blank]
            self.assertEqual(len(errors), len(expected))
            for name, message in zip(expected, errors):
                self.assertTrue(message.startswith(name))


class TestMetadataSynchronizer(unittest.TestCase):
    """Test the read, snapshot, update pipeline."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.api = MagicMock()
        self.api.get_project.return_value = Project(
            name="my-project", common_metadata=make_store(a="1")
        )
        self.api.set_common_metadata.return_value = OperationResult(
            name="operation-1", status="RUNNING"
        )
        self.sync = MetadataSynchronizer(
            project_id="my-project", snapshot_dir=self.tmpdir.name, api=self.api
        )

    def tearDown(self):
        self.tmpdir.cleanup()

    def submitted(self):
        project_id, store = self.api.set_common_metadata.call_args[0]
        self.assertEqual(project_id, "my-project")
        return store.to_dict()

    @patch("metadata.time.time", return_value=1700000000.5)
    def test_update_existing_key(self, mock_time):
        """Test updating a present key submits the replaced value."""
        result = self.sync.update_key("a", "2")

        self.assertEqual(result.name, "operation-1")
        self.assertEqual(
            self.submitted(),
            {"fingerprint": "F1", "items": [{"key": "a", "value": "2"}]},
        )

    @patch("metadata.time.time", return_value=1700000000.5)
    def test_update_absent_key(self, mock_time):
        """Test setting a new key appends it to the submitted store."""
        self.sync.update_key("b", "2")

        self.assertEqual(
            self.submitted(),
            {
                "fingerprint": "F1",
                "items": [{"key": "a", "value": "1"}, {"key": "b", "value": "2"}],
            },
        )

    @patch("metadata.time.time", return_value=1700000000.5)
    def test_snapshot_written_before_update(self, mock_time):
        """Test the prior metadata is saved under project-timestamp.json."""
        path = os.path.join(self.tmpdir.name, "my-project-1700000000.json")

        def check_snapshot(project_id, store):
            self.assertTrue(os.path.exists(path))
            return OperationResult(name="operation-1")

        self.api.set_common_metadata.side_effect = check_snapshot

        self.sync.update_key("a", "2")

        with open(path, encoding="utf-8") as f:
            content = f.read()
        self.assertNotIn("\n", content)
        self.assertEqual(
            json.loads(content),
            {"fingerprint": "F1", "items": [{"key": "a", "value": "1"}]},
        )

    def test_snapshot_failure_prevents_mutation(self):
        """Test no update is submitted when the snapshot cannot be written."""
        self.sync.snapshot_dir = os.path.join(self.tmpdir.name, "missing")

        with self.assertRaises(SnapshotWriteError):
            self.sync.update_key("a", "2")

        self.api.set_common_metadata.assert_not_called()

    def test_validation_happens_before_any_call(self):
        """Test blank inputs are all reported without contacting the API."""
        sync = MetadataSynchronizer(project_id="", api=self.api)

        with self.assertRaises(ValidationError) as ctx:
            sync.update_key("", "")

        self.assertEqual(len(ctx.exception.errors), 3)
        self.api.get_project.assert_not_called()

    def test_read_failure_aborts(self):
        """Test a failed read stops before snapshot or mutation."""
        self.api.get_project.side_effect = RemoteReadError("Get project failed (500)")

        with self.assertRaises(RemoteReadError):
            self.sync.update_key("a", "2")

        self.assertEqual(os.listdir(self.tmpdir.name), [])
        self.api.set_common_metadata.assert_not_called()

    def test_stale_fingerprint_is_not_retried(self):
        """Test a concurrency rejection propagates after a single attempt."""
        self.api.set_common_metadata.side_effect = OptimisticConcurrencyError(
            "stale", 412
        )

        with self.assertRaises(OptimisticConcurrencyError):
            self.sync.update_key("a", "2")

        self.assertEqual(self.api.get_project.call_count, 1)
        self.assertEqual(self.api.set_common_metadata.call_count, 1)

    def test_operation_error_is_surfaced(self):
        """Test an operation error entry fails the update with its details."""
        self.api.set_common_metadata.return_value = OperationResult(
            errors=[OperationErrorEntry("CONFLICT", "busy", "metadata")]
        )

        with self.assertRaises(OperationError) as ctx:
            self.sync.update_key("a", "2")

        self.assertIn("CONFLICT", str(ctx.exception))
        self.assertIn("busy", str(ctx.exception))
        self.assertIn("metadata", str(ctx.exception))

    def test_dry_run_does_not_write(self):
        """Test dry-run neither snapshots nor submits."""
        self.sync.dry_run = True

        self.assertIsNone(self.sync.update_key("a", "2"))

        self.assertEqual(os.listdir(self.tmpdir.name), [])
        self.api.set_common_metadata.assert_not_called()

    def test_list_keys_sorted(self):
        """Test metadata is listed in key order."""
        self.api.get_project.return_value = Project(
            name="my-project", common_metadata=make_store(b="2", a="1")
        )
        self.assertEqual([i.key for i in self.sync.list_keys()], ["a", "b"])

    def test_compare_projects(self):
        """Test values from both projects are paired by key."""
        self.api.get_project.side_effect = [
            Project("a-proj", make_store(shared="x", only_a="1")),
            Project("b-proj", make_store(shared="x", only_b="2")),
        ]

        keys = self.sync.compare("b-proj")

        self.assertTrue(keys["shared"].equal)
        self.assertEqual((keys["only_a"].a, keys["only_a"].b), ("1", ""))
        self.assertEqual((keys["only_b"].a, keys["only_b"].b), ("", "2"))

    def test_compare_requires_both_projects(self):
        """Test both blank project IDs are reported."""
        sync = MetadataSynchronizer(project_id="", api=self.api)
        with self.assertRaises(ValidationError) as ctx:
            sync.compare("")
        self.assertEqual(len(ctx.exception.errors), 2)


if __name__ == "__main__":
    unittest.main()
