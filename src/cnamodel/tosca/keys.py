# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Key management for TOSCA documents.

Node and relationship templates are stored in flat maps keyed by identifier,
and every edge of the entity graph is written as an identifier reference.
This module turns entity names into identifiers (and back into labels), keeps
identifiers unique within one export, and tracks which identifier belongs to
which entity id during one conversion run.
"""

from __future__ import annotations

import re

from cnamodel.tosca.errors import DuplicateKeyError, KeyReferenceError

# ###############
# Public Interface
# ###############


def to_identifier(name: str) -> str:
    """Turn an entity name into a document identifier.

    Whitespace runs and runs of ``# > - .`` become a single underscore,
    repeated underscores are collapsed, and the result is lower-cased.

    >>> to_identifier("  Order Service -> v2 ")
    'order_service_v2'
    """
    key = _DISALLOWED.sub("_", name.strip())
    return _MULTIPLE_UNDERSCORES.sub("_", key).lower()


def to_label(identifier: str) -> str:
    """Turn a document identifier into a display label.

    Underscores become spaces and every word starts upper-case. This does not
    restore the original name: casing, punctuation and whitespace lost by
    :func:`to_identifier` stay lost.

    >>> to_label("order_service")
    'Order Service'
    """
    label = identifier.replace("_", " ").strip()
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), label)


class UniqueKeyManager:
    """Hands out identifiers that are unique within one export run."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def ensure_uniqueness(self, candidate: str) -> str:
        """Return *candidate*, or ``candidate_N`` with the smallest free N if taken."""
        key = candidate
        counter = 1
        while key in self._seen:
            key = f"{candidate}_{counter}"
            counter += 1
        self._seen.add(key)
        return key


class KeyIdMap:
    """One-to-one association between document identifiers and entity ids."""

    def __init__(self) -> None:
        self._id_by_key: dict[str, str] = {}
        self._key_by_id: dict[str, str] = {}

    def add(self, key: str, entity_id: str) -> None:
        """Register the pair (*key*, *entity_id*).

        Raises:
            DuplicateKeyError: If either side is already registered.
        """
        if key in self._id_by_key:
            raise DuplicateKeyError(f"Identifier '{key}' is already registered")
        if entity_id in self._key_by_id:
            raise DuplicateKeyError(f"Entity id '{entity_id}' is already registered")
        self._id_by_key[key] = entity_id
        self._key_by_id[entity_id] = key

    def key_of(self, entity_id: str) -> str:
        """Return the identifier registered for *entity_id*."""
        try:
            return self._key_by_id[entity_id]
        except KeyError:
            raise KeyReferenceError(f"No identifier registered for entity id '{entity_id}'") from None

    def id_of(self, key: str) -> str:
        """Return the entity id registered for identifier *key*."""
        try:
            return self._id_by_key[key]
        except KeyError:
            raise KeyReferenceError(f"Unknown identifier '{key}'") from None

    def has_key(self, key: str) -> bool:
        return key in self._id_by_key

    def has_id(self, entity_id: str) -> bool:
        return entity_id in self._key_by_id

    def __len__(self) -> int:
        return len(self._id_by_key)


# ################
# Implementation
# ################

_DISALLOWED = re.compile(r"[\s#>\-.]+")
_MULTIPLE_UNDERSCORES = re.compile(r"_+")
_WORD_START = re.compile(r"(^|\s)(\S)")
