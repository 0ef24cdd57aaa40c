"""Versioned system prompts for the AI pre-screening step.

Usage:
    manager = PromptManager()
    version = manager.resolve_version("fact_check", "latest")   # "v1"
    prompt = manager.get("fact_check", version=version)
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class PromptManager:
    """Load versioned prompt templates from disk.

    Layout::

        hakikisha/prompts/templates/{prompt_name}/v{N}.txt
        hakikisha/prompts/templates/{prompt_name}/metadata.json

    The resolved version tag is stored with every AI verdict, so a verdict
    can always be traced back to the exact prompt that produced it.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        if base_dir is None:
            base_dir = Path(__file__).parent / "templates"
        self.base_dir = base_dir

        if not self.base_dir.exists():
            raise FileNotFoundError(
                f"Prompt templates directory not found: {self.base_dir}"
            )

        logger.debug("PromptManager initialized with base_dir=%s", self.base_dir)

    @lru_cache(maxsize=32)
    def get(self, prompt_name: str, version: str = "latest") -> str:
        """Return the prompt text for ``prompt_name`` at ``version``.

        Raises:
            FileNotFoundError: the prompt or the version does not exist
        """
        version = self.resolve_version(prompt_name, version)

        prompt_path = self.base_dir / prompt_name / f"{version}.txt"
        if not prompt_path.exists():
            raise FileNotFoundError(
                f"Prompt '{prompt_name}' version '{version}' not found at {prompt_path}"
            )

        prompt_text = prompt_path.read_text(encoding="utf-8").strip()
        logger.debug("Loaded prompt %s:%s (%d chars)", prompt_name, version, len(prompt_text))
        return prompt_text

    def resolve_version(self, prompt_name: str, version: str = "latest") -> str:
        """Turn ``"latest"`` into a concrete tag; other tags pass through."""
        if version != "latest":
            return version
        versions = self.list_versions(prompt_name)
        if not versions:
            raise FileNotFoundError(
                f"No versions found for prompt '{prompt_name}' "
                f"in {self.base_dir / prompt_name}"
            )
        return versions[-1]

    def get_metadata(self, prompt_name: str, version: str) -> Dict:
        """Metadata for one version ({} when metadata.json is absent or broken)."""
        meta_path = self.base_dir / prompt_name / "metadata.json"
        if not meta_path.exists():
            logger.warning("No metadata.json found for prompt '%s'", prompt_name)
            return {}

        try:
            metadata = json.loads(meta_path.read_text())
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON in %s: %s", meta_path, exc)
            return {}
        return metadata.get(self.resolve_version(prompt_name, version), {})

    def list_versions(self, prompt_name: str) -> List[str]:
        prompt_dir = self.base_dir / prompt_name
        if not prompt_dir.exists():
            return []
        return sorted((p.stem for p in prompt_dir.glob("v*.txt")), key=self._version_number)

    @staticmethod
    def _version_number(version: str) -> int:
        # "v10" -> 10, "v2a" -> 2
        digits = "".join(filter(str.isdigit, version))
        return int(digits) if digits else 0
