"""
Prompt Store

Loads prompt templates from a directory tree laid out as
``<templates_dir>/<namespace>/<name>.txt``. Templates are plain text with
``{{$variable}}`` markers filled in by exact string replacement.

Templates are read once, at construction, and never change afterwards.
"""

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Tuple, Union

logger = logging.getLogger("structrag.common.prompts")

TEMPLATE_SUFFIX = ".txt"
_MARKER_RE = re.compile(r"\{\{\$(\w+)\}\}")


class PromptNotFoundError(KeyError):
    """Raised when a (namespace, name) template does not exist"""

    def __init__(self, namespace: str, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f"Prompt template not found: {namespace}/{name}")


class PromptStore:
    """Immutable collection of prompt templates keyed by (namespace, name)"""

    def __init__(self, templates: Dict[Tuple[str, str], str]):
        self._templates = MappingProxyType(dict(templates))

    @classmethod
    def from_directory(cls, templates_dir: Union[str, Path]) -> "PromptStore":
        """
        Load every ``*.txt`` file one level below each namespace directory.

        Args:
            templates_dir: Root directory holding one sub-directory per namespace

        Returns:
            PromptStore with all templates found
        """
        root = Path(templates_dir).expanduser()
        if not root.is_dir():
            raise FileNotFoundError(f"Prompt templates directory not found: {root}")

        templates = {}
        for namespace_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            for path in sorted(namespace_dir.glob(f"*{TEMPLATE_SUFFIX}")):
                templates[(namespace_dir.name, path.stem)] = path.read_text(encoding="utf-8")

        logger.info("Loaded %d prompt templates from %s", len(templates), root)
        return cls(templates)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, namespace: str, name: str) -> str:
        """Return the literal template text"""
        try:
            return self._templates[(namespace, name)]
        except KeyError:
            raise PromptNotFoundError(namespace, name) from None

    def validate(self, namespace: str, names: Iterable[str]) -> None:
        """Fail fast if any required template is missing"""
        missing = [n for n in names if (namespace, n) not in self._templates]
        if missing:
            raise PromptNotFoundError(namespace, ", ".join(missing))


def render_prompt(template: str, **values: str) -> str:
    """Substitute ``{{$name}}`` markers with the given values in one pass"""
    return _MARKER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)
