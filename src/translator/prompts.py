"""Prompt templates for JSON translation."""

from typing import Dict, List

SYSTEM_PROMPT = (
    "You are a JSON translator. You must ONLY return valid JSON, no other text. "
    "Your response must be parseable by a standard JSON parser."
)

USER_PROMPT_TEMPLATE = """You are a JSON translator. Translate the following JSON content to {target_language}.

IMPORTANT RULES:
1. ONLY return the translated JSON, no explanations or other text
2. Keep ALL keys exactly as they are, only translate values
3. Maintain the EXACT same JSON structure and format
4. Preserve all special characters, spaces, and punctuation
5. Return valid JSON that can be parsed by a standard JSON parser
6. Do not add any markdown, comments, or extra formatting

Input JSON:
{source_text}

Remember: Return ONLY the translated JSON, nothing else."""


def build_user_prompt(source_text: str, target_language: str) -> str:
    return USER_PROMPT_TEMPLATE.format(
        target_language=target_language, source_text=source_text
    )


def build_messages(source_text: str, target_language: str) -> List[Dict[str, str]]:
    """Chat messages for one translation request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(source_text, target_language)},
    ]
