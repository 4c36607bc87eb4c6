# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for identifier sanitizing, unique keys, and the key/id map."""

import pytest

from cnamodel.tosca.errors import DuplicateKeyError, KeyReferenceError
from cnamodel.tosca.keys import KeyIdMap, UniqueKeyManager, to_identifier, to_label

# ###############
# to_identifier
# ###############


class TestToIdentifier:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Order Service", "order_service"),
            ("  Order   Service  ", "order_service"),
            ("HTTP API", "http_api"),
            ("api-gateway", "api_gateway"),
            ("payment.v2", "payment_v2"),
            ("#1 > queue", "_1_queue"),
            ("a -- b..c", "a_b_c"),
            ("already_snake", "already_snake"),
            ("double__underscore", "double_underscore"),
            ("tab\tand\nnewline", "tab_and_newline"),
        ],
    )
    def test_normalizes_names(self, name: str, expected: str) -> None:
        assert to_identifier(name) == expected

    def test_is_deterministic(self) -> None:
        assert to_identifier("Billing Service") == to_identifier("Billing Service")

    def test_empty_name_gives_empty_identifier(self) -> None:
        assert to_identifier("") == ""
        assert to_identifier("   ") == ""

    def test_punctuation_only_name_gives_single_underscore(self) -> None:
        assert to_identifier("#->.") == "_"
        assert to_identifier("- -") == "_"

    def test_other_characters_are_kept(self) -> None:
        assert to_identifier("Cart/Checkout (EU)") == "cart/checkout_(eu)"


# ###############
# to_label
# ###############


class TestToLabel:
    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("order_service", "Order Service"),
            ("http_api", "Http Api"),
            ("worker_1", "Worker 1"),
            ("single", "Single"),
            ("", ""),
            ("_", ""),
            ("_leading", "Leading"),
            ("trailing_", "Trailing"),
        ],
    )
    def test_labels(self, identifier: str, expected: str) -> None:
        assert to_label(identifier) == expected

    def test_round_trip_is_lossy(self) -> None:
        """Casing, punctuation and whitespace are not restored."""
        name = "API-Gateway  v2.1"
        label = to_label(to_identifier(name))
        assert label == "Api Gateway V2 1"
        assert label != name

    @pytest.mark.parametrize(
        "name",
        ["Order Service", "HTTP API", "  padded  ", "#hash tag", "trailing-", "a.b.c", "mixed CASE words", "x"],
    )
    def test_round_trip_label_shape(self, name: str) -> None:
        label = to_label(to_identifier(name))
        assert label == label.strip()
        assert label[0].isupper()
        for index, char in enumerate(label):
            if char == " ":
                assert label[index + 1].isupper()


# ###############
# UniqueKeyManager
# ###############


class TestUniqueKeyManager:
    def test_unseen_candidate_is_returned_unchanged(self) -> None:
        manager = UniqueKeyManager()
        assert manager.ensure_uniqueness("worker") == "worker"
        assert manager.ensure_uniqueness("queue") == "queue"

    def test_duplicates_get_smallest_free_suffix(self) -> None:
        manager = UniqueKeyManager()
        assert [manager.ensure_uniqueness("worker") for _ in range(4)] == [
            "worker",
            "worker_1",
            "worker_2",
            "worker_3",
        ]

    def test_suffix_skips_keys_taken_verbatim(self) -> None:
        manager = UniqueKeyManager()
        manager.ensure_uniqueness("worker_1")
        manager.ensure_uniqueness("worker")
        assert manager.ensure_uniqueness("worker") == "worker_2"

    def test_suffixed_result_collides_with_later_verbatim_candidate(self) -> None:
        manager = UniqueKeyManager()
        manager.ensure_uniqueness("worker")
        assert manager.ensure_uniqueness("worker") == "worker_1"
        assert manager.ensure_uniqueness("worker_1") == "worker_1_1"

    def test_empty_candidate_is_disambiguated(self) -> None:
        manager = UniqueKeyManager()
        assert manager.ensure_uniqueness("") == ""
        assert manager.ensure_uniqueness("") == "_1"

    def test_all_results_pairwise_distinct(self) -> None:
        manager = UniqueKeyManager()
        candidates = ["a", "b", "a", "a_1", "", "", "b", "a", "_1", "a_2"]
        results = [manager.ensure_uniqueness(c) for c in candidates]
        assert len(set(results)) == len(candidates)

    def test_state_is_per_instance(self) -> None:
        UniqueKeyManager().ensure_uniqueness("worker")
        assert UniqueKeyManager().ensure_uniqueness("worker") == "worker"


# ###############
# KeyIdMap
# ###############


class TestKeyIdMap:
    def test_lookups_in_both_directions(self) -> None:
        key_ids = KeyIdMap()
        key_ids.add("order_service", "id-1")
        key_ids.add("http_api", "id-2")
        assert key_ids.id_of("order_service") == "id-1"
        assert key_ids.key_of("id-2") == "http_api"
        assert len(key_ids) == 2

    def test_bidirectional_identities(self) -> None:
        key_ids = KeyIdMap()
        pairs = [("a", "1"), ("b", "2"), ("c", "3")]
        for key, entity_id in pairs:
            key_ids.add(key, entity_id)
        for key, entity_id in pairs:
            assert key_ids.id_of(key_ids.key_of(entity_id)) == entity_id
            assert key_ids.key_of(key_ids.id_of(key)) == key

    def test_unknown_key_raises_reference_error(self) -> None:
        key_ids = KeyIdMap()
        with pytest.raises(KeyReferenceError, match="missing_key"):
            key_ids.id_of("missing_key")

    def test_unknown_id_raises_reference_error(self) -> None:
        key_ids = KeyIdMap()
        with pytest.raises(KeyReferenceError, match="no-such-id"):
            key_ids.key_of("no-such-id")

    def test_reference_error_is_a_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            KeyIdMap().id_of("x")

    def test_duplicate_key_is_rejected(self) -> None:
        key_ids = KeyIdMap()
        key_ids.add("a", "1")
        with pytest.raises(DuplicateKeyError, match="'a'"):
            key_ids.add("a", "2")
        assert key_ids.id_of("a") == "1"
        assert not key_ids.has_id("2")

    def test_duplicate_id_is_rejected(self) -> None:
        key_ids = KeyIdMap()
        key_ids.add("a", "1")
        with pytest.raises(DuplicateKeyError, match="'1'"):
            key_ids.add("b", "1")
        assert not key_ids.has_key("b")

    def test_membership(self) -> None:
        key_ids = KeyIdMap()
        key_ids.add("a", "1")
        assert key_ids.has_key("a")
        assert key_ids.has_id("1")
        assert not key_ids.has_key("1")
        assert not key_ids.has_id("a")
