"""Complaint letter generation.

``ComplaintGenerator.generate`` runs in two explicit stages:

1. ``try_remote_generation`` asks the completion service for a category and a
   formal letter. It returns ``(letter, None)`` on success or
   ``(None, reason)`` when the service failed or answered with nothing usable.
2. ``template_generation`` always produces a letter from fixed boilerplate and
   the keyword table in ``languages``.

Both letters are wrapped by ``render_envelope`` so the two paths differ only in
body text and category.
"""
import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from complaint_modules.ai_client import GroqClient
from complaint_modules.errors import AIServiceError
from complaint_modules.eventlog import event_log, utc_iso, utc_now
from complaint_modules.languages import default_category, get_language
from complaint_modules.models import GenerationResult

BORDER = "═" * 51
TITLE_INDENT = " " * 20

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# CATEGORY: <value>   (marker line, may carry markdown emphasis or a heading prefix)
# ---                 (separator, next non-blank line)
# <body>
_CATEGORY_RE = re.compile(r'^[ \t#>*_]*CATEGORY[*_]*:[*_ \t]*(.*?)[*_ \t]*$', re.IGNORECASE | re.MULTILINE)
_SEPARATOR_RE = re.compile(r'\A\s*^[ \t]*-{3,}[ \t]*$', re.MULTILINE)


@dataclass(frozen=True)
class Letter:
    category: str
    body: str


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def new_letter_token(when: datetime) -> str:
    """Reference printed in the letter header: CMP + base36 millis + 5 random chars."""
    millis = int(when.timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"CMP{_base36(millis)}{suffix}"


def build_prompt(text: str, language: str) -> str:
    return get_language(language)["prompt"].format(text=text)


def parse_ai_response(response: str, language: str) -> Tuple[str, str]:
    """Split a completion into ``(category, body)``.

    Without a usable ``CATEGORY:`` marker the whole response is the body and
    the category is the language default.
    """
    text = response.replace("\r\n", "\n")
    m = _CATEGORY_RE.search(text)
    if not m or not m.group(1):
        return default_category(language), text.strip()
    rest = text[m.end():]
    sep = _SEPARATOR_RE.match(rest)
    if sep:
        rest = rest[sep.end():]
    return m.group(1), rest.strip()


def detect_category(text: str, language: str) -> str:
    """First keyword group found in the lowercased text wins."""
    lowered = text.lower()
    pack = get_language(language)
    for keywords, name in pack["categories"]:
        if any(k in lowered for k in keywords):
            return name
    return pack["default_category"]


def render_envelope(token: str, category: str, body: str, language: str, when: datetime) -> str:
    pack = get_language(language)
    labels = pack["labels"]
    local = when.astimezone()
    return "\n".join([
        BORDER,
        TITLE_INDENT + pack["title"],
        BORDER,
        "",
        f"{labels['id']}: {token}",
        f"{labels['date']}: {pack['format_date'](local)}",
        f"{labels['time']}: {pack['format_time'](local)}",
        f"{labels['category']}: {category}",
        "",
        BORDER,
        "",
        body,
        "",
        BORDER,
        f"{labels['status']}: {pack['pending']}",
        BORDER,
    ])


class ComplaintGenerator:
    """Turns transcribed complaint text into a formatted letter.

    ``ai_client`` is anything with ``complete(prompt) -> str`` that raises
    ``AIServiceError`` on failure (see ``ai_client.GroqClient``). Pass None
    for template-only generation.
    """

    def __init__(self, ai_client=None, clock: Optional[Callable[[], datetime]] = None):
        self.ai_client = ai_client
        self.clock = clock or utc_now

    @property
    def provider_name(self) -> str:
        if self.ai_client is None:
            return "Template-based"
        return getattr(self.ai_client, "provider_name", "AI")

    def try_remote_generation(self, text: str, language: str) -> Tuple[Optional[Letter], Optional[str]]:
        if self.ai_client is None:
            return None, "AI client not configured"
        try:
            response = self.ai_client.complete(build_prompt(text, language))
        except AIServiceError as e:
            return None, str(e)
        category, body = parse_ai_response(response, language)
        if not body:
            return None, "AI response had no letter body"
        return Letter(category, body), None

    def template_generation(self, text: str, language: str) -> Letter:
        category = detect_category(text, language)
        body = get_language(language)["letter"].format(category=category, description=text)
        return Letter(category, body)

    def generate(self, text: str, language: str) -> GenerationResult:
        source = "template"
        if self.ai_client is None:
            letter = self.template_generation(text, language)
        else:
            letter, error = self.try_remote_generation(text, language)
            if letter is None:
                event_log("ai_fallback", reason=error, language=language)
                letter = self.template_generation(text, language)
            else:
                source = "ai"
                event_log("ai_generation_ok", language=language, category=letter.category)

        now = self.clock()
        token = new_letter_token(now)
        return GenerationResult(
            complaint_text=render_envelope(token, letter.category, letter.body, language, now),
            category=letter.category,
            description=text,
            timestamp=utc_iso(now),
            language=language,
            source=source,
        )


def build_generator() -> ComplaintGenerator:
    """Compose a generator from environment settings."""
    return ComplaintGenerator(ai_client=GroqClient.from_env())
