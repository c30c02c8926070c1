"""Slug generation for document identifiers"""

import re


DATE_PREFIX_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(.*)$')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def split_date_prefix(stem: str) -> tuple[str | None, str]:
    """Split '2015-08-12-my-post' into ('2015-08-12', 'my-post'); (None, stem) if no prefix."""
    m = DATE_PREFIX_RE.match(stem)
    if m:
        return f"{m.group(1)}-{m.group(2)}-{m.group(3)}", m.group(4)
    return None, stem
