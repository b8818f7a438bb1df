"""Inline local ``$ref`` pointers so the translator sees a self-contained tree.

Only document-local references (``#/...``) are supported. A reference that
refers back to one of the references currently being expanded is a cycle and
cannot be inlined; it is reported as a :class:`ParseFailure`.
"""

import logging
from typing import Any

from api_test_engine.errors import ParseFailure

logger = logging.getLogger(__name__)

MAX_DOCUMENT_DEPTH = 200
# Counts dicts and lists after inlining.
MAX_EXPANDED_NODES = 500_000


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    """Follow a local JSON pointer such as ``#/components/schemas/Pet``."""
    if not ref.startswith("#"):
        raise ParseFailure(f"External reference '{ref}' is not supported; only local '#/...' references are.")
    node: Any = document
    pointer = ref[1:].lstrip("/")
    if not pointer:
        return node
    for token in pointer.split("/"):
        token = _unescape(token)
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            raise ParseFailure(f"Reference '{ref}' does not point to anything in the document.")
    return node


def resolve_refs(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``document`` with every ``$ref`` replaced by its target.

    Sibling keys next to a ``$ref`` are merged over the resolved target, so a
    local ``description`` still overrides the referenced one. Nodes reached
    more than once (repeated references, YAML aliases) are resolved once and
    shared in the result.
    """
    return _RefResolver(document).resolve()


class _RefResolver:
    """Single-use walker over one document.

    Every resolved container is memoized with its expanded size: per source
    node, and per reference string for ``$ref`` targets. A node that resolved
    once resolves the same way on any other path, since a cycle below it would
    already have been reported.
    """

    def __init__(self, document: dict[str, Any]):
        self.document = document
        self._by_node: dict[int, tuple[Any, int]] = {}
        self._by_ref: dict[str, tuple[Any, int]] = {}

    def resolve(self) -> dict[str, Any]:
        return self._resolve(self.document, (), frozenset(), 0)[0]

    def _resolve(
        self, node: Any, chain: tuple[str, ...], active: frozenset[int], depth: int
    ) -> tuple[Any, int]:
        if not isinstance(node, (dict, list)):
            return node, 0
        memo = self._by_node.get(id(node))
        if memo is not None:
            return memo
        # YAML aliases can make a node contain itself without any $ref.
        if id(node) in active:
            raise ParseFailure("The document contains a self-referencing structure (YAML alias cycle).")
        if depth > MAX_DOCUMENT_DEPTH:
            raise ParseFailure(
                f"The document is nested more than {MAX_DOCUMENT_DEPTH} levels deep "
                "once references are inlined."
            )
        active = active | {id(node)}

        if isinstance(node, list):
            items = [self._resolve(item, chain, active, depth + 1) for item in node]
            result = [value for value, _ in items], 1 + sum(size for _, size in items)
        elif isinstance(node.get("$ref"), str):
            result = self._resolve_ref(node, chain, active, depth)
        else:
            entries = {key: self._resolve(value, chain, active, depth + 1) for key, value in node.items()}
            result = (
                {key: value for key, (value, _) in entries.items()},
                1 + sum(size for _, size in entries.values()),
            )

        if result[1] > MAX_EXPANDED_NODES:
            raise ParseFailure(
                f"The document expands to more than {MAX_EXPANDED_NODES} nodes once "
                "references and aliases are inlined."
            )
        self._by_node[id(node)] = result
        return result

    def _resolve_ref(
        self, node: dict[str, Any], chain: tuple[str, ...], active: frozenset[int], depth: int
    ) -> tuple[Any, int]:
        ref = node["$ref"]
        if ref in chain:
            cycle = " -> ".join(chain[chain.index(ref):] + (ref,))
            raise ParseFailure(f"Circular reference detected: {cycle}. Recursive schemas are not supported.")
        target = self._by_ref.get(ref)
        if target is None:
            target = self._resolve(resolve_pointer(self.document, ref), chain + (ref,), frozenset(), depth + 1)
            self._by_ref[ref] = target

        siblings = {k: self._resolve(v, chain, active, depth + 1) for k, v in node.items() if k != "$ref"}
        if not siblings:
            return target
        value, size = target
        if not isinstance(value, dict):
            logger.debug("Ignoring siblings of non-object reference %s", ref)
            return target
        merged = {**value, **{k: v for k, (v, _) in siblings.items()}}
        return merged, size + sum(s for _, s in siblings.values())
