"""Markdown prompt templates: YAML frontmatter, Jinja2 body, role sections.

A prompt file looks like::

    ---
    name: glosa_prediction
    version: 1
    ---
    system:
    ...
    user:
    ... {{ operator_name }} ...
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List

import frontmatter
from jinja2 import Environment, StrictUndefined, TemplateError

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

_ROLE_LINE = re.compile(r"^(system|user|assistant):\s*$", re.MULTILINE)

_jinja = Environment(undefined=StrictUndefined, keep_trailing_newline=True)


def prompt_path(prompt_name: str) -> Path:
    return PROMPTS_DIR / f"{prompt_name}.md"


def load_prompt(prompt_name: str, **variables: Any) -> Dict[str, Any]:
    """
    Render a prompt file into chat messages.

    Args:
        prompt_name: File name in the prompts directory, without ``.md``
        **variables: Template variables; a missing one is an error

    Returns:
        ``{"config": <frontmatter dict>, "messages": [{"role", "content"}, ...]}``

    Raises:
        FileNotFoundError: If the prompt file does not exist
        ValueError: If the file cannot be parsed or rendered
    """
    path = prompt_path(prompt_name)
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")

    try:
        post = frontmatter.loads(path.read_text(encoding="utf-8"))
        rendered = _jinja.from_string(post.content).render(**variables)
    except TemplateError as e:
        raise ValueError(f"Failed to render prompt {prompt_name}: {e}") from e
    except Exception as e:
        raise ValueError(f"Failed to parse prompt file {path}: {e}") from e

    messages = split_messages(rendered)
    logger.debug(f"Rendered prompt {prompt_name} v{post.metadata.get('version', '?')}: {len(messages)} messages")
    return {"config": dict(post.metadata), "messages": messages}


def split_messages(content: str) -> List[Dict[str, str]]:
    """Split rendered text on ``system:``/``user:``/``assistant:`` lines.

    Text before the first role line is ignored; empty sections are dropped.

    Raises:
        ValueError: If the text has no role line
    """
    parts = _ROLE_LINE.split(content)
    # parts = [preamble, role1, body1, role2, body2, ...]
    messages = [
        {"role": role, "content": body.strip()}
        for role, body in zip(parts[1::2], parts[2::2])
        if body.strip()
    ]
    if not messages:
        raise ValueError("Prompt has no 'system:' or 'user:' section")
    return messages
