"""Parser to normalize raw Management API payloads into snapshot documents."""
from __future__ import annotations

import copy
import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _drop_path(obj: Any, path: str) -> None:
    parts = path.split(".")
    current = obj
    for part in parts[:-1]:
        if not isinstance(current, dict):
            return
        current = current.get(part)
    if isinstance(current, dict):
        current.pop(parts[-1], None)


def sanitize_name(name: str) -> str:
    """Turn a resource name into a safe file stem."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "unnamed"


class KeywordReplacer:
    """Swaps literal tenant values for ``##KEY##`` placeholders.

    All mappings are applied in a single pass, longest value first, so a
    mapping that is a substring of another cannot split it and no inserted
    placeholder is rewritten by a later mapping.
    """

    def __init__(self, mappings: Optional[Dict[str, str]] = None):
        pairs = [(key, str(value)) for key, value in (mappings or {}).items() if str(value)]
        self.pairs: List[Tuple[str, str]] = sorted(pairs, key=lambda kv: (-len(kv[1]), kv[0]))
        self._keys: Dict[str, str] = {}
        for key, literal in self.pairs:
            self._keys.setdefault(literal, key)
        self._pattern = re.compile("|".join(re.escape(literal) for literal in self._keys)) if self._keys else None

    def replace(self, value: Any) -> Any:
        if isinstance(value, str):
            if self._pattern is None:
                return value
            return self._pattern.sub(lambda match: f"##{self._keys[match.group(0)]}##", value)
        if isinstance(value, list):
            return [self.replace(item) for item in value]
        if isinstance(value, dict):
            return {k: self.replace(v) for k, v in value.items()}
        return value


class Parser:
    def __init__(self, keyword_mappings: Optional[Dict[str, str]] = None):
        self.replacer = KeywordReplacer(keyword_mappings)

    def parse_object(self, definition: Dict[str, Any], raw: Dict[str, Any]) -> Dict[str, Any]:
        document = copy.deepcopy(raw)
        for path in definition.get("strip_fields", []):
            _drop_path(document, path)
        return self.replacer.replace(document)

    def file_stem(self, definition: Dict[str, Any], raw: Dict[str, Any]) -> str:
        if "name_fields" in definition:
            parts = [str(raw.get(field, "")) for field in definition["name_fields"]]
            return sanitize_name("-".join(part for part in parts if part))
        name = raw.get(definition.get("name_field", "name")) or raw.get(definition.get("id_field", "id")) or ""
        # Names go through keyword replacement too so the path matches the content
        return sanitize_name(self.replacer.replace(str(name)))

    def parse_many(self, definition: Dict[str, Any], payload: Iterable[Dict[str, Any]]) -> List[Tuple[str, Dict]]:
        """Return ``(file_stem, document)`` pairs with unique, order-independent stems.

        Items sharing a stem are ordered by their identifier, then by their
        canonical JSON, and every item after the first takes the lowest
        ``-N`` suffix that no other item's stem uses.
        """
        id_field = definition.get("id_field", "id")
        entries = []
        for item in payload:
            document = self.parse_object(definition, item)
            entries.append((
                self.file_stem(definition, item),
                str(item.get(id_field, "")),
                json.dumps(document, sort_keys=True),
                document,
            ))
        entries.sort(key=lambda entry: entry[:3])

        natural = {entry[0] for entry in entries}
        used = set()
        parsed: List[Tuple[str, Dict]] = []
        for stem, _, _, document in entries:
            unique = stem
            if unique in used:
                suffix = 2
                while f"{stem}-{suffix}" in used or f"{stem}-{suffix}" in natural:
                    suffix += 1
                unique = f"{stem}-{suffix}"
            used.add(unique)
            parsed.append((unique, document))
        return parsed
