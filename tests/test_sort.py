"""Tests for per-mailbox sort preferences."""

import pytest

from mailprefs.codec import decode_mapping, encode_mapping
from mailprefs.constants import (
    IMAP_SORT_DATE,
    SORT_DESCENDING,
    SORT_SEQUENCE,
    SORT_SUBJECT,
    SORT_THREAD,
    SORTPREF,
)
from mailprefs.exceptions import PreferenceLocked
from mailprefs.hooks import HookRegistry
from mailprefs.mailbox import FolderListResolver, MailboxInfo
from mailprefs.prefs import Prefs
from mailprefs.sort import SortPreferenceStore, SortSpec, new_sortby_value


class CountingPrefs(Prefs):
    """Prefs that counts writes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes = 0

    def set_value(self, key, value):
        self.writes += 1
        super().set_value(key, value)


@pytest.fixture
def prefs():
    return CountingPrefs()


def preloaded(blob: str) -> CountingPrefs:
    prefs = CountingPrefs()
    prefs.set_value(SORTPREF, blob)
    prefs.writes = 0
    return prefs


class TestSortSpec:
    def test_to_dict_only_set_fields(self):
        assert SortSpec("INBOX").to_dict() == {}
        assert SortSpec("INBOX", 3).to_dict() == {"b": 3}
        assert SortSpec("INBOX", None, 1).to_dict() == {"d": 1}
        assert SortSpec("INBOX", 3, 0).to_dict() == {"b": 3, "d": 0}

    def test_resolved_falls_back_to_defaults(self, prefs):
        spec = SortSpec("INBOX")
        assert spec.resolved_sort_by(prefs) == IMAP_SORT_DATE
        assert spec.resolved_sort_dir(prefs) == 0
        spec = SortSpec("INBOX", SORT_SUBJECT, SORT_DESCENDING)
        assert spec.resolved_sort_by(prefs) == SORT_SUBJECT
        assert spec.resolved_sort_dir(prefs) == SORT_DESCENDING


class TestHydration:
    def test_fresh(self, prefs):
        store = SortPreferenceStore(prefs)
        assert len(store) == 0
        assert list(store) == []

    def test_loads_blob(self):
        store = SortPreferenceStore(preloaded("{Sent: {b: 1, d: 1}}"))
        assert store.contains("Sent")
        assert store.get("Sent") == SortSpec("Sent", 1, 1)

    @pytest.mark.parametrize("blob", [
        "INBOX",
        "42",
        "[1, 2, 3]",
        "{INBOX: {b: 2}",
        "{INBOX: !!python/object:collections.OrderedDict {}}",
        "!!python/object/apply:os.system ['true']",
        "{INBOX: {b: 2001-01-01}}",
        "{INBOX: !!set {a, b}}",
    ])
    def test_malformed_blob_is_empty(self, blob):
        store = SortPreferenceStore(preloaded(blob))
        assert len(store) == 0
        assert store.get("INBOX") == SortSpec("INBOX")

    def test_non_string_value_is_empty(self):
        prefs = CountingPrefs()
        prefs.set_value(SORTPREF, ["INBOX"])
        store = SortPreferenceStore(prefs)
        assert len(store) == 0


class TestGetSet:
    def test_set_by_only(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=2)
        spec = store.get("INBOX")
        assert spec.sort_by == 2
        assert spec.sort_dir is None
        assert decode_mapping(prefs.get_value(SORTPREF)) == {"INBOX": {"b": 2}}

    def test_set_merges_fields(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=SORT_SUBJECT)
        store.set("INBOX", sort_dir=SORT_DESCENDING)
        assert store.get("INBOX") == SortSpec("INBOX", SORT_SUBJECT, SORT_DESCENDING)

    def test_empty_patch_is_noop(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX")
        assert prefs.writes == 0
        assert not store.contains("INBOX")

    def test_zero_is_a_value(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_dir=0)
        assert store.contains("INBOX")
        assert store.get("INBOX").sort_dir == 0

    def test_each_set_persists(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=1)
        store.set("Sent", sort_by=2)
        assert prefs.writes == 2

    def test_round_trip_through_rehydration(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=1)
        store.set("Sent", sort_by=SORT_THREAD, sort_dir=1)
        store.set("INBOX", sort_by=SORT_SUBJECT)
        store.set("Drafts", sort_dir=0)

        reloaded = SortPreferenceStore(prefs)
        assert reloaded.get("INBOX") == SortSpec("INBOX", SORT_SUBJECT, None)
        assert reloaded.get("Sent") == SortSpec("Sent", SORT_THREAD, 1)
        assert reloaded.get("Drafts") == SortSpec("Drafts", None, 0)

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        SortPreferenceStore(Prefs(path)).set("Lists/python", sort_by=SORT_THREAD)
        assert SortPreferenceStore(Prefs(path)).get("Lists/python").sort_by == SORT_THREAD

    def test_untouched_entries_round_trip(self):
        prefs = preloaded("{Old: {b: 5, d: 1, x: keep}, Weird: 7}")
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=3)
        data = decode_mapping(prefs.get_value(SORTPREF))
        assert data["Old"] == {"b": 5, "d": 1, "x": "keep"}
        assert data["Weird"] == 7
        assert store.get("Weird") == SortSpec("Weird")

    def test_unknown_mailbox(self, prefs):
        store = SortPreferenceStore(prefs)
        assert store.get("Nope") == SortSpec("Nope", None, None)
        assert not store.contains("Nope")

    def test_locked_pref_raises(self):
        store = SortPreferenceStore(Prefs(locked=[SORTPREF]))
        assert store.is_locked()
        with pytest.raises(PreferenceLocked):
            store.set("INBOX", sort_by=1)
        assert not store.contains("INBOX")
        assert len(store) == 0


class TestHook:
    def test_hook_can_override(self, prefs):
        def force_thread(spec):
            if spec.mailbox.startswith("Lists/"):
                spec.sort_by = SORT_THREAD

        hooks = HookRegistry({"mbox_sort": force_thread})
        store = SortPreferenceStore(prefs, hooks)
        assert store.get("Lists/dev").sort_by == SORT_THREAD
        assert store.get("INBOX").sort_by is None

    def test_missing_hook_is_noop(self, prefs):
        store = SortPreferenceStore(prefs, HookRegistry())
        store.set("INBOX", sort_by=3)
        assert store.get("INBOX").sort_by == 3

    def test_set_goes_through_hook(self, prefs):
        def force_desc(spec):
            spec.sort_dir = SORT_DESCENDING

        store = SortPreferenceStore(prefs, HookRegistry({"mbox_sort": force_desc}))
        store.set("INBOX", sort_by=3)
        assert decode_mapping(prefs.get_value(SORTPREF)) == {"INBOX": {"b": 3, "d": 1}}


class TestDelete:
    def test_delete(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=1)
        store.delete("INBOX")
        assert not store.contains("INBOX")
        assert decode_mapping(prefs.get_value(SORTPREF)) == {}

    def test_delete_twice_writes_once(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("INBOX", sort_by=1)
        prefs.writes = 0
        store.delete("INBOX")
        state = prefs.get_value(SORTPREF)
        store.delete("INBOX")
        assert prefs.writes == 1
        assert prefs.get_value(SORTPREF) == state

    def test_delete_unknown_does_not_write(self, prefs):
        SortPreferenceStore(prefs).delete("INBOX")
        assert prefs.writes == 0

    def test_locked_delete_keeps_entry(self):
        prefs = preloaded("{INBOX: {b: 3}}")
        prefs.locked.add(SORTPREF)
        store = SortPreferenceStore(prefs)
        with pytest.raises(PreferenceLocked):
            store.delete("INBOX")
        assert store.contains("INBOX")
        assert store.get("INBOX") == SortSpec("INBOX", 3)


class TestIteration:
    def test_items_in_storage_order(self):
        store = SortPreferenceStore(preloaded("{B: {b: 1}, A: {d: 1}, C: {}}"))
        assert list(store) == [("B", {"b": 1}), ("A", {"d": 1}), ("C", {})]

    def test_restartable(self):
        store = SortPreferenceStore(preloaded("{A: {b: 1}, B: {b: 2}}"))
        assert list(store.items()) == list(store.items())

    def test_reflects_changes(self, prefs):
        store = SortPreferenceStore(prefs)
        store.set("A", sort_by=1)
        assert [m for m, _ in store] == ["A"]
        store.set("B", sort_by=2)
        store.delete("A")
        assert [m for m, _ in store] == ["B"]

    def test_delete_while_iterating(self):
        store = SortPreferenceStore(preloaded("{A: {b: 1}, B: {b: 2}}"))
        for mailbox, _entry in store:
            store.delete(mailbox)
        assert len(store) == 0


class FakeResolver:
    def __init__(self, infos):
        self.infos = {i.name: i for i in infos}
        self.calls = []

    def resolve(self, names):
        self.calls.append(list(names))
        return [self.infos[n] for n in names]


class TestGc:
    def test_gc(self):
        prefs = preloaded("{A: {b: 1}, B: {b: 2}, C: {b: 3}}")
        store = SortPreferenceStore(prefs)
        resolver = FakeResolver([
            MailboxInfo("A", exists=True),
            MailboxInfo("B", exists=False),
            MailboxInfo("C", exists=True, is_saved_query=True),
        ])
        removed = store.gc(resolver)
        assert sorted(removed) == ["B", "C"]
        assert [m for m, _ in store] == ["A"]
        assert decode_mapping(prefs.get_value(SORTPREF)) == {"A": {"b": 1}}
        assert resolver.calls == [["A", "B", "C"]]

    def test_gc_keeps_virtual_folders(self):
        store = SortPreferenceStore(preloaded("{INBOX: {b: 1}, Unseen: {b: 2}, Query: {b: 3}, Gone: {}}"))
        resolver = FolderListResolver(["INBOX"], {"Unseen": True, "Query": False})
        store.gc(resolver)
        assert [m for m, _ in store] == ["INBOX", "Unseen"]

    def test_gc_nothing_to_remove(self):
        prefs = preloaded("{A: {b: 1}}")
        store = SortPreferenceStore(prefs)
        assert store.gc(FolderListResolver(["A"])) == []
        assert prefs.writes == 0

    def test_gc_numeric_mailbox_names(self):
        prefs = preloaded("{2024: {b: 3}, 2023: {b: 7}, INBOX: {b: 3}}")
        store = SortPreferenceStore(prefs)
        assert store.get("2024") == SortSpec("2024", 3)
        assert store.gc(FolderListResolver(["INBOX", "2024"])) == ["2023"]
        assert [m for m, _ in store] == ["2024", "INBOX"]
        assert decode_mapping(prefs.get_value(SORTPREF)) == {"2024": {"b": 3}, "INBOX": {"b": 3}}


class TestMigration:
    def test_new_sortby_value(self):
        assert new_sortby_value(1) == SORT_SEQUENCE
        assert new_sortby_value(2) == IMAP_SORT_DATE
        assert new_sortby_value(161) == SORT_THREAD

    @pytest.mark.parametrize("code", [0, -1, -161, 3, 9, 10, 100, 160, 162, None, True, False, "1", 1.0])
    def test_other_values_unchanged(self, code):
        assert new_sortby_value(code) is None

    def test_static_on_store(self, prefs):
        assert SortPreferenceStore(prefs).new_sortby_value(161) == SORT_THREAD

    def test_upgrade(self):
        prefs = preloaded("{Sent: {b: 1, d: 1}, INBOX: {b: 161}, Drafts: {b: 2}, Trash: {b: 7}, X: {d: 0}}")
        store = SortPreferenceStore(prefs)
        assert store.upgrade() == 3
        assert prefs.writes == 1
        assert decode_mapping(prefs.get_value(SORTPREF)) == {
            "Sent": {"b": SORT_SEQUENCE, "d": 1},
            "INBOX": {"b": SORT_THREAD},
            "Drafts": {"b": IMAP_SORT_DATE},
            "Trash": {"b": 7},
            "X": {"d": 0},
        }

    def test_upgrade_idempotent(self):
        prefs = preloaded("{Sent: {b: 1, d: 1}, INBOX: {b: 161}, Drafts: {b: 2}}")
        store = SortPreferenceStore(prefs)
        store.upgrade()
        once = decode_mapping(prefs.get_value(SORTPREF))
        store.upgrade()
        assert decode_mapping(prefs.get_value(SORTPREF)) == once
        assert SortPreferenceStore(prefs).upgrade() == 0

    def test_upgrade_skipped_for_default_pref(self):
        prefs = CountingPrefs(defaults={SORTPREF: encode_mapping({"Sent": {"b": 1}})})
        store = SortPreferenceStore(prefs)
        assert store.upgrade() == 0
        assert prefs.writes == 0
        assert store.get("Sent").sort_by == 1

    def test_upgrade_leaves_booleans(self):
        prefs = preloaded("{A: {b: true}, B: {b: 1}}")
        store = SortPreferenceStore(prefs)
        assert store.upgrade() == 1
        assert decode_mapping(prefs.get_value(SORTPREF)) == {"A": {"b": True}, "B": {"b": SORT_SEQUENCE}}

    def test_locked_upgrade_keeps_entries(self):
        prefs = preloaded("{Sent: {b: 1, d: 1}}")
        prefs.locked.add(SORTPREF)
        store = SortPreferenceStore(prefs)
        with pytest.raises(PreferenceLocked):
            store.upgrade()
        assert store.get("Sent") == SortSpec("Sent", 1, 1)
        assert list(store) == [("Sent", {"b": 1, "d": 1})]
