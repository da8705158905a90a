from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from utils.errors import ProviderError

TEMPLATE_DIR = Path(__file__).parent / "templates"

ANALYZE_SYSTEM = "You are a git diff analyzer. Analyze the provided file changes and return structured data."
SCORE_SYSTEM = "You are a git commit impact scorer. Calculate impact scores for the provided file changes."
GENERATE_SYSTEM = "You are a git commit message generator. Generate concise, descriptive commit messages."
SELECT_SYSTEM = (
    "You are a git commit message expert. Based on the multi-step analysis, "
    "select the best commit message and provide the final formatted response."
)


class PromptRenderer:
    """Renders the Jinja2 prompt templates sent to remote providers."""

    def __init__(self, template_dir: Optional[str] = None):
        self.template_dir = template_dir or str(TEMPLATE_DIR)
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

    def render(self, template_name: str, **context: Any) -> str:
        try:
            return self.env.get_template(template_name).render(**context).strip()
        except TemplateError as e:
            raise ProviderError(f"Failed to render prompt template {template_name}: {e}") from e
