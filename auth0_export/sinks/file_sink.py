"""File-based sink that lays a tenant snapshot out as a directory tree."""
from __future__ import annotations

import json
import os
from typing import Dict, List, Set, Tuple


def dump_document(document) -> str:
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


class SnapshotSink:
    """Writes snapshot documents under ``root``.

    Output is byte-stable for identical input, which is what change detection
    in the repository relies on.
    """

    def __init__(self, root: str, allow_delete: bool = False):
        self.root = str(root)
        self.allow_delete = allow_delete
        self.written: List[str] = []

    def write_file(self, relative_path: str, document) -> str:
        path = os.path.join(self.root, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(dump_document(document))
        self.written.append(relative_path)
        return path

    def write_collection(self, directory: str, documents: List[Tuple[str, Dict]]) -> List[str]:
        target = os.path.join(self.root, directory)
        paths = [self.write_file(os.path.join(directory, f"{stem}.json"), doc) for stem, doc in documents]
        if self.allow_delete:
            self._prune(target, {os.path.basename(p) for p in paths})
        return paths

    @staticmethod
    def _prune(directory: str, keep: Set[str]) -> None:
        if not os.path.isdir(directory):
            return
        for name in os.listdir(directory):
            if name.endswith(".json") and name not in keep:
                os.remove(os.path.join(directory, name))
