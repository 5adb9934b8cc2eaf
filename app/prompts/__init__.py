import os
from functools import lru_cache
from typing import List


class PromptRegistry:
    """Markdown prompt templates living next to this module, filled with str.format."""

    def __init__(self, prompts_dir: str):
        self.prompts_dir = prompts_dir

    def list_prompts(self) -> List[str]:
        return sorted(name[:-3] for name in os.listdir(self.prompts_dir) if name.endswith(".md"))

    @lru_cache(maxsize=16)
    def get_prompt(self, name: str) -> str:
        path = os.path.join(self.prompts_dir, f"{name}.md")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            raise FileNotFoundError(f"Prompt '{name}' not found in {self.prompts_dir}") from None

    def render(self, name: str, **params) -> str:
        """Fills a template. Literal braces in templates must be doubled."""
        return self.get_prompt(name).format(**params).strip()


registry = PromptRegistry(os.path.dirname(os.path.abspath(__file__)))
