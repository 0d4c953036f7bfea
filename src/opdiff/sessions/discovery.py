"""Locate session logs under the projects root by uid or tool-use id."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Tuple

from .cache import CacheStats, SessionCache, SessionInfo

__all__ = ["DEFAULT_PROJECTS_ROOT", "SessionDiscovery", "contains_uid"]

LOGGER = logging.getLogger(__name__)

DEFAULT_PROJECTS_ROOT = Path("~/.claude/projects")
SESSION_SUFFIX = ".jsonl"


def _iter_values(node: Any) -> Iterator[Any]:
    if isinstance(node, Mapping):
        yield from node.values()
    elif isinstance(node, list):
        yield from node


def contains_uid(node: Any, uid: str) -> bool:
    """Return whether ``uid`` appears anywhere inside a decoded log entry.

    Text blocks of a ``tool_result`` are decoded as JSON when possible and
    otherwise searched as plain text.
    """
    if not isinstance(node, (Mapping, list)):
        return False
    if isinstance(node, Mapping):
        if node.get("uid") == uid:
            return True
        if node.get("type") == "server_response":
            data = node.get("data")
            metadata = data.get("metadata") if isinstance(data, Mapping) else None
            if isinstance(metadata, Mapping) and metadata.get("uid") == uid:
                return True
        if node.get("type") == "tool_result" and isinstance(node.get("content"), list):
            for item in node["content"]:
                if not isinstance(item, Mapping) or item.get("type") != "text":
                    continue
                text = item.get("text")
                if not isinstance(text, str):
                    continue
                try:
                    decoded = json.loads(text)
                except ValueError:
                    if uid in text:
                        return True
                    continue
                if contains_uid(decoded, uid):
                    return True
    for value in _iter_values(node):
        if isinstance(value, (Mapping, list)):
            if contains_uid(value, uid):
                return True
        elif value == uid:
            return True
    return False


def _mentions_tool_use(entry: Any, tool_use_id: str) -> bool:
    if not isinstance(entry, Mapping):
        return False
    if entry.get("tool_use_id") == tool_use_id:
        return True
    message = entry.get("message")
    content = message.get("content") if isinstance(message, Mapping) else None
    if isinstance(content, list):
        for item in content:
            if isinstance(item, Mapping) and item.get("type") == "tool_use" and item.get("id") == tool_use_id:
                return True
    return False


class SessionDiscovery:
    """Scan ``<projects_root>/<project-hash>/<session-id>.jsonl`` files."""

    def __init__(
        self,
        projects_root: Path | str | None = None,
        cache: SessionCache | None = None,
        *,
        retry_delay: float = 0.075,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        root = DEFAULT_PROJECTS_ROOT if projects_root is None else Path(projects_root)
        self.projects_root = root.expanduser()
        self.cache = cache if cache is not None else SessionCache()
        self.retry_delay = retry_delay
        self._sleep = sleep

    @staticmethod
    def session_id_from_filename(filename: str) -> str | None:
        if not filename.endswith(SESSION_SUFFIX):
            return None
        return filename[: -len(SESSION_SUFFIX)]

    def find_session_by_uid(self, uid: str) -> SessionInfo | None:
        cached = self.cache.get(uid)
        if cached is not None:
            return cached
        info = self._scan(lambda entry: contains_uid(entry, uid))
        if info is not None:
            self.cache.set(uid, info)
        return info

    def find_session_by_tool_use_id(self, tool_use_id: str, max_retries: int = 2) -> SessionInfo | None:
        """Find the session that recorded ``tool_use_id``.

        The scan is repeated up to ``max_retries`` extra times because the
        host may still be flushing the entry to disk.
        """
        cached = self.cache.get(tool_use_id)
        if cached is not None:
            return cached
        for attempt in range(max_retries + 1):
            if attempt:
                self._sleep(self.retry_delay)
            info = self._scan(lambda entry: _mentions_tool_use(entry, tool_use_id))
            if info is not None:
                self.cache.set(tool_use_id, info)
                return info
            LOGGER.debug("Tool use %s not found (attempt %d of %d)", tool_use_id, attempt + 1, max_retries + 1)
        return None

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def _session_files(self) -> Iterator[Tuple[str, Path]]:
        try:
            projects = sorted(self.projects_root.iterdir())
        except OSError as error:
            LOGGER.debug("Projects root %s is not readable: %s", self.projects_root, error)
            return
        for project in projects:
            if not project.is_dir():
                continue
            try:
                files = sorted(project.iterdir())
            except OSError as error:
                LOGGER.debug("Skipping unreadable project %s: %s", project, error)
                continue
            for candidate in files:
                if candidate.is_file() and candidate.name.endswith(SESSION_SUFFIX):
                    yield project.name, candidate

    def _scan(self, predicate: Callable[[Any], bool]) -> SessionInfo | None:
        for project_hash, path in self._session_files():
            if not self._file_matches(path, predicate):
                continue
            session_id = self.session_id_from_filename(path.name)
            if session_id:
                return SessionInfo(session_file=str(path), project_hash=project_hash, session_id=session_id)
        return None

    @staticmethod
    def _file_matches(path: Path, predicate: Callable[[Any], bool]) -> bool:
        try:
            with path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    if not line.strip():
                        continue
                    try:
                        entry = json.loads(line)
                    except ValueError:
                        continue
                    if predicate(entry):
                        return True
        except (OSError, UnicodeDecodeError) as error:
            LOGGER.debug("Skipping unreadable session file %s: %s", path, error)
        return False
