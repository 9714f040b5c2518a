"""
Prompt Builder

Loads a backend's prompt template and fills in the topic and source material.
"""

from pathlib import Path
from typing import Dict, Optional

from src.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_PROMPT_DIR = Path(__file__).parent.parent.parent / "config" / "prompts"

SOURCE_PREFIX = "Base your content on this source material: "

DEFAULT_TEMPLATE = """Create a professional slide deck about: {topic}

{sourceText}

Return a JSON array of slides. Each slide has a "title", an "html" body and an "image_query".
"""


class PromptBuilder:
    """Renders prompt templates from a directory, caching each file once read."""

    def __init__(self, prompt_dir: Optional[str] = None):
        self.prompt_dir = Path(prompt_dir) if prompt_dir else DEFAULT_PROMPT_DIR
        self._templates: Dict[str, str] = {}

    def load_template(self, name: str) -> str:
        if name not in self._templates:
            self._templates[name] = self._read_template(name)
        return self._templates[name]

    def _read_template(self, name: str) -> str:
        path = self.prompt_dir / name
        if not path.exists():
            logger.warning(f"Prompt template not found: {path}, using default")
            return DEFAULT_TEMPLATE
        return path.read_text(encoding="utf-8")

    def build(self, template_name: str, topic: str, source_text: Optional[str] = None) -> str:
        """
        Render a template.

        Only the first ``{topic}`` and the first ``{sourceText}`` placeholder
        are replaced. Without source text the second placeholder becomes
        empty.
        """
        template = self.load_template(template_name)
        source = f"{SOURCE_PREFIX}{source_text}" if source_text else ""
        return template.replace("{topic}", topic, 1).replace("{sourceText}", source, 1)
