"""Filesystem storage for invoice templates."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import portalocker
from pydantic import ValidationError

from ..rendering.errors import (
    ConfigurationError,
    StoreUnavailableError,
    TemplateNotFoundError,
)
from ..utils.config import LOCK_TIMEOUT_SECONDS
from .templates_models import Template, is_valid_template_id

_LOGGER = logging.getLogger("invoice_templates.backends.templates_storage")

TEMPLATES_ROOT_NAME = ".invoice_templates"
TEMPLATES_DIRNAME = "templates"
LOCKS_DIRNAME = ".locks"
DEFAULT_POINTER_FILENAME = "default.json"
POINTER_LOCK_NAME = "default"


def get_templates_root(base_path: Optional[Path] = None) -> Path:
    """
    Resolve the template storage root.

    Priority:
    1) INVOICE_TEMPLATES_ROOT env var (absolute or relative to cwd)
    2) explicit base_path (caller-provided)
    3) repository root (parent of invoice_templates/)
    """

    env_root = os.getenv("INVOICE_TEMPLATES_ROOT", "").strip()
    if env_root:
        return Path(env_root).expanduser().resolve()

    if base_path is not None:
        return (base_path / TEMPLATES_ROOT_NAME).resolve()

    repo_root = Path(__file__).resolve().parents[2]
    return (repo_root / TEMPLATES_ROOT_NAME).resolve()


def _ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _write_json_atomic(path: Path, payload: dict) -> None:
    _ensure_directory(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileTemplateStore:
    """One JSON document per template plus a ``default.json`` pointer record.

    ``root`` is resolved on every call unless given explicitly, so changing
    ``INVOICE_TEMPLATES_ROOT`` takes effect without rebuilding the store.
    """

    def __init__(self, root: Optional[Path] = None, *, lock_timeout: float | None = None) -> None:
        self._root = Path(root).resolve() if root is not None else None
        self.lock_timeout = LOCK_TIMEOUT_SECONDS if lock_timeout is None else lock_timeout

    @property
    def root(self) -> Path:
        return self._root if self._root is not None else get_templates_root()

    def ensure_structure(self) -> None:
        _ensure_directory(self.root / TEMPLATES_DIRNAME)
        _ensure_directory(self.root / LOCKS_DIRNAME)

    def _template_path(self, template_id: str) -> Path:
        return self.root / TEMPLATES_DIRNAME / f"{template_id}.json"

    def _pointer_path(self) -> Path:
        return self.root / DEFAULT_POINTER_FILENAME

    @contextmanager
    def _locked(self, name: str) -> Iterator[Path]:
        try:
            self.ensure_structure()
            lock_file = self.root / LOCKS_DIRNAME / f"{name}.lock"
            lock_file.touch(exist_ok=True)
            handle = portalocker.Lock(
                lock_file,
                mode="a",
                timeout=self.lock_timeout,
                flags=portalocker.LOCK_EX | portalocker.LOCK_NB,
            )
            handle.acquire()
        except portalocker.LockException as exc:
            raise StoreUnavailableError(f"Timed out waiting for lock {name}") from exc
        except OSError as exc:
            raise StoreUnavailableError(f"Template store unavailable: {exc}") from exc
        try:
            yield lock_file
        finally:
            handle.release()

    def _load(self, template_id: str, *, is_default: bool) -> Template | None:
        if not is_valid_template_id(template_id):
            return None
        path = self._template_path(template_id)
        try:
            payload = _read_json(path)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Template {template_id} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise StoreUnavailableError(f"Could not read template {template_id}: {exc}") from exc

        if not isinstance(payload, dict):
            raise ConfigurationError(f"Template {template_id} is not a JSON object")
        payload.setdefault("id", template_id)
        try:
            return Template.from_document(payload, is_default=is_default)
        except ValidationError as exc:
            raise ConfigurationError(f"Template {template_id} is invalid: {exc}") from exc

    def default_id(self) -> str | None:
        try:
            payload = _read_json(self._pointer_path())
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            _LOGGER.warning("Ignoring unreadable default pointer %s", self._pointer_path())
            return None
        except OSError as exc:
            raise StoreUnavailableError(f"Could not read default pointer: {exc}") from exc
        if not isinstance(payload, dict):
            _LOGGER.warning("Ignoring malformed default pointer %s", self._pointer_path())
            return None
        template_id = payload.get("templateId")
        return template_id if isinstance(template_id, str) and template_id else None

    def get(self, template_id: str) -> Template | None:
        return self._load(template_id, is_default=template_id == self.default_id())

    def get_default(self) -> Template | None:
        template_id = self.default_id()
        if template_id is None:
            return None
        template = self._load(template_id, is_default=True)
        if template is None:
            _LOGGER.warning("Default pointer names missing template %s", template_id)
        return template

    def upsert(self, template: Template) -> Template:
        with self._locked(f"template-{template.id}"):
            try:
                _write_json_atomic(self._template_path(template.id), template.to_document())
            except OSError as exc:
                raise StoreUnavailableError(f"Could not write template {template.id}: {exc}") from exc
        _LOGGER.info("Saved invoice template", extra={"template": template.id})
        return template.model_copy(update={"is_default": template.id == self.default_id()})

    def set_default(self, template_id: str) -> None:
        if not is_valid_template_id(template_id):
            raise TemplateNotFoundError(template_id)
        with self._locked(f"template-{template_id}"), self._locked(POINTER_LOCK_NAME):
            if not self._template_path(template_id).exists():
                raise TemplateNotFoundError(template_id)
            try:
                _write_json_atomic(self._pointer_path(), {"templateId": template_id})
            except OSError as exc:
                raise StoreUnavailableError(f"Could not write default pointer: {exc}") from exc

    def delete(self, template_id: str) -> bool:
        if not is_valid_template_id(template_id):
            return False
        with self._locked(f"template-{template_id}"):
            try:
                self._template_path(template_id).unlink()
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise StoreUnavailableError(f"Could not delete template {template_id}: {exc}") from exc
            with self._locked(POINTER_LOCK_NAME):
                if self.default_id() == template_id:
                    self._pointer_path().unlink(missing_ok=True)
        _LOGGER.info("Deleted invoice template", extra={"template": template_id})
        return True

    def iter_template_paths(self) -> Iterator[Path]:
        templates_dir = self.root / TEMPLATES_DIRNAME
        if not templates_dir.exists():
            return iter(())

        paths = [p for p in templates_dir.iterdir() if p.is_file() and p.suffix == ".json"]
        paths.sort()
        return iter(paths)

    def list_templates(self) -> list[Template]:
        """Load every parsable template; broken documents are logged and skipped."""

        default_id = self.default_id()
        templates = []
        for path in self.iter_template_paths():
            try:
                template = self._load(path.stem, is_default=path.stem == default_id)
            except ConfigurationError as exc:
                _LOGGER.warning("Skipping template %s: %s", path.stem, exc)
                continue
            if template is not None:
                templates.append(template)
        return templates


__all__ = ["FileTemplateStore", "get_templates_root"]
