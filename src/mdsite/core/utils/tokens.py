"""Shared markdown-it parser and token utilities"""

import re
from typing import Iterator

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from mdurl import decode as url_decode


REF_SCHEME = 'ref:'
POST_URL_RE = re.compile(r'\{%\s*post_url\s+(\S+?)\s*%\}')

# Backtick code spans are matched first so tags shown inside them are left alone
_CODE_OR_POST_URL_RE = re.compile(r'(`+).*?(?<!`)\1(?!`)|' + POST_URL_RE.pattern, re.S)

POST_URL_FOUND = 'post_url_targets'     # env key: targets seen, in order
POST_URL_LINKS = 'post_url_links'       # env key: target -> replacement url


def _post_url_rule(state: StateCore) -> None:
    """Replace {% post_url X %} in inline content before inline parsing.

    Targets are recorded in env[POST_URL_FOUND]; a tag whose target has an
    entry in env[POST_URL_LINKS] is swapped for that url, others stay as written.
    Fenced and indented code never reach this rule (they are not inline tokens).
    """
    found = state.env.setdefault(POST_URL_FOUND, [])
    links = state.env.get(POST_URL_LINKS, {})

    def repl(m: re.Match) -> str:
        target = m.group(2)
        if target is None:
            return m.group(0)
        found.append(target)
        return links.get(target, m.group(0))

    for tok in state.tokens:
        if tok.type == 'inline' and '{%' in tok.content:
            tok.content = _CODE_OR_POST_URL_RE.sub(repl, tok.content)


def post_url_plugin(md: MarkdownIt) -> None:
    md.core.ruler.after('block', 'post_url', _post_url_rule)


def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name, with post_url support."""
    return MarkdownIt(preset, options_update={"linkify": False}).use(post_url_plugin)


def ref_links(tokens: list[Token]) -> Iterator[tuple[Token, str]]:
    """Yield (link_open token, target) for every inline link using the ref: scheme.

    Targets are percent-decoded, since markdown-it encodes non-ASCII hrefs.
    """
    for tok in tokens:
        if tok.type != 'inline':
            continue
        for child in tok.children or []:
            if child.type != 'link_open':
                continue
            href = child.attrGet('href')
            if isinstance(href, str) and href.startswith(REF_SCHEME):
                yield child, url_decode(href[len(REF_SCHEME):])


def post_url_targets(md: MarkdownIt, text: str) -> tuple[list[Token], list[str]]:
    """Parse text and return (tokens, post_url targets outside code)."""
    env: dict = {}
    tokens = md.parse(text, env)
    return tokens, env.get(POST_URL_FOUND, [])
