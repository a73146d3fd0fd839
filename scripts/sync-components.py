#!/usr/bin/env python3
"""
Sync component styles from a published site.

Fetches the live page, finds the stylesheet that holds the component
definitions, and writes two artifacts:

  latest.css       - verbatim snapshot of the stylesheet
  components.json  - selector -> list of matching rule blocks, with
                     :root custom properties resolved

Selectors come from an explicit list (--classes / --tags), are mined from
the stylesheet itself (--mode mined), or are read from page elements that
carry a marker attribute (--mode tagged).

Usage:
    python scripts/sync-components.py --page-url https://example.webflow.io
    PAGE_URL=https://example.com COMPONENT_CLASSES=btn,card python scripts/sync-components.py

Requirements:
    pip install requests beautifulsoup4
"""

import argparse
import json
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urljoin

try:
    import requests
except ImportError:
    print("Error: requests is required. Install with: pip install requests")
    sys.exit(1)

try:
    from bs4 import BeautifulSoup
except ImportError:
    print("Error: beautifulsoup4 is required. Install with: pip install beautifulsoup4")
    sys.exit(1)


DEFAULT_TIMEOUT = 30
UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

# Third-party hosts that never carry component styles
EXCLUDED_HOSTS = [
    "fonts.googleapis.com",
    "fonts.gstatic.com",
    "use.typekit.net",
    "p.typekit.net",
    "kit.fontawesome.com",
    "use.fontawesome.com",
    "googletagmanager.com",
    "google-analytics.com",
    "cdn.jsdelivr.net/npm/@fontsource",
]

# Webflow serves the generated site bundle from these CDNs
CDN_CSS_PATTERN = re.compile(
    r"https://(?:cdn\.prod\.website-files\.com|assets\.website-files\.com|uploads-ssl\.webflow\.com)"
    r"[^\"'\s()<>]+\.css"
)

# Tags that may be mined as component selectors
TAG_WHITELIST = [
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "a", "button",
    "input", "select", "textarea", "label", "form",
    "ul", "ol", "li",
]

# At-rules whose bodies hold ordinary style rules
CONDITIONAL_AT_RULES = {"media", "supports", "container", "document", "layer"}

SELECTOR_MODES = ["mined", "tagged"]
DISCOVERY_MODES = ["links", "cdn"]

IDENT_CHARS = r"[A-Za-z0-9_-]"
CLASS_CHAIN_PATTERN = re.compile(r"\.(-?[A-Za-z_][\w-]*(?:\.-?[A-Za-z_][\w-]*)*)")
AT_KEYWORD_PATTERN = re.compile(r"@([\w-]+)")
CUSTOM_PROPERTY_PATTERN = re.compile(r"(--[\w-]+)\s*:\s*([^;]+)")
COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class SyncError(Exception):
    """Base class for every fatal sync failure."""


class ConfigError(SyncError):
    """Required configuration is missing or invalid."""


class FetchError(SyncError):
    """A GET request failed or returned a non-success status."""

    def __init__(self, url, status=None, reason=""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = " ".join(str(part) for part in (status, reason) if part)
        super().__init__(f"Fetch failed: {detail or 'no response'} ({url})")


class NotFoundError(SyncError):
    """No usable stylesheet reference was found in the page markup."""


class AmbiguousSourceError(SyncError):
    """Several stylesheets qualify equally.

    Never raised: the locator always breaks ties by picking the longest
    URL, which is a heuristic and not a guarantee of picking the bundle.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SyncConfig:
    page_url: str
    css_url: str = ""
    classes: tuple = ()
    tags: tuple = ()
    mode: str = "mined"
    marker_attr: str = "data-component"
    discovery: str = "links"
    output_dir: Path = Path(".")
    css_output: str = "latest.css"
    json_output: str = "components.json"
    timeout: float = DEFAULT_TIMEOUT
    verbose: bool = False

    @property
    def selector_mode(self):
        """Explicit lists win over the configured mining mode."""
        if self.classes or self.tags:
            return "explicit"
        return self.mode


def split_list(value):
    """Split a comma-separated option into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser():
    parser = argparse.ArgumentParser(
        description=(
            "Fetch a published page and its stylesheet, then write a per-selector "
            "index of component style rules with custom properties resolved."
        )
    )
    parser.add_argument(
        "--page-url", default=os.environ.get("PAGE_URL", ""),
        help="Published page to fetch (env: PAGE_URL, required)"
    )
    parser.add_argument(
        "--css-url", default=os.environ.get("CSS_URL", ""),
        help="Stylesheet URL to use directly instead of discovering it (env: CSS_URL)"
    )
    parser.add_argument(
        "--classes", default=os.environ.get("COMPONENT_CLASSES", ""),
        help="Comma-separated class list, disables mining (env: COMPONENT_CLASSES)"
    )
    parser.add_argument(
        "--tags", default=os.environ.get("COMPONENT_TAGS", ""),
        help="Comma-separated tag list, disables mining (env: COMPONENT_TAGS)"
    )
    parser.add_argument(
        "--mode", default=os.environ.get("SELECTOR_MODE", "mined"),
        help="Selector source when no explicit list is given: mined or tagged (env: SELECTOR_MODE)"
    )
    parser.add_argument(
        "--marker-attr", default=os.environ.get("COMPONENT_MARKER", "data-component"),
        help="Attribute that flags component elements in tagged mode (env: COMPONENT_MARKER)"
    )
    parser.add_argument(
        "--discovery", default=os.environ.get("CSS_DISCOVERY", "links"),
        help="How to find the stylesheet: links (<link rel=stylesheet>) or cdn (env: CSS_DISCOVERY)"
    )
    parser.add_argument(
        "--output-dir", default=os.environ.get("OUTPUT_DIR", "."),
        help="Directory for the snapshot and the index (env: OUTPUT_DIR)"
    )
    parser.add_argument(
        "--css-output", default="latest.css",
        help="File name of the stylesheet snapshot (default: latest.css)"
    )
    parser.add_argument(
        "--json-output", default="components.json",
        help="File name of the component index (default: components.json)"
    )
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for each fetch (default: {DEFAULT_TIMEOUT})"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Print debug notes about skipped blocks and selector collisions"
    )
    return parser


def config_from_args(args):
    """Validate parsed arguments and freeze them into a SyncConfig."""
    page_url = (args.page_url or "").strip()
    if not page_url:
        raise ConfigError("Missing PAGE_URL (set the env var or pass --page-url)")
    if args.mode not in SELECTOR_MODES:
        raise ConfigError(f"Unknown selector mode '{args.mode}' (choose from {', '.join(SELECTOR_MODES)})")
    if args.discovery not in DISCOVERY_MODES:
        raise ConfigError(
            f"Unknown discovery mode '{args.discovery}' (choose from {', '.join(DISCOVERY_MODES)})"
        )
    if args.mode == "tagged" and not args.marker_attr.strip():
        raise ConfigError("Tagged mode needs a marker attribute name")

    return SyncConfig(
        page_url=page_url,
        css_url=(args.css_url or "").strip(),
        classes=tuple(split_list(args.classes)),
        tags=tuple(split_list(args.tags)),
        mode=args.mode,
        marker_attr=args.marker_attr.strip(),
        discovery=args.discovery,
        output_dir=Path(args.output_dir),
        css_output=args.css_output,
        json_output=args.json_output,
        timeout=args.timeout,
        verbose=args.verbose,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def print_step(msg):
    """Print a progress step."""
    print(f"  -> {msg}")


def print_debug(msg, verbose):
    if verbose:
        print(f"     [debug] {msg}")


def fetch_text(url, timeout=DEFAULT_TIMEOUT):
    """GET a URL and return the decoded body, raising FetchError on failure."""
    headers = {
        "User-Agent": UA,
        "Accept": "text/html,text/css,*/*;q=0.8",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(url, reason=str(e)) from e
    if not resp.ok:
        raise FetchError(url, status=resp.status_code, reason=resp.reason or "")
    return resp.text


# ---------------------------------------------------------------------------
# Stylesheet locator
# ---------------------------------------------------------------------------

def is_excluded_host(url):
    return any(host in url for host in EXCLUDED_HOSTS)


def find_stylesheet_links(html, base_url=None):
    """Return the href of every <link rel="stylesheet"> in document order."""
    soup = BeautifulSoup(html, "html.parser")
    urls = []
    for link in soup.find_all("link"):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        href = (link.get("href") or "").strip()
        if "stylesheet" not in [r.lower() for r in rel] or not href:
            continue
        urls.append(urljoin(base_url, href) if base_url else href)
    return urls


def find_cdn_stylesheets(html):
    """Return every platform CDN stylesheet URL embedded anywhere in the text."""
    return CDN_CSS_PATTERN.findall(html)


def pick_stylesheet(candidates):
    """Pick the longest candidate URL.

    Generated site bundles carry a hash in their file name and are almost
    always the longest reference on the page. The sort is stable, so among
    equally long URLs the first one in document order wins.
    """
    unique = list(dict.fromkeys(candidates))
    if not unique:
        return None
    return sorted(unique, key=len, reverse=True)[0]


def locate_stylesheet(html, discovery="links", base_url=None):
    """Find the URL of the stylesheet holding the component definitions."""
    if discovery == "cdn":
        candidates = find_cdn_stylesheets(html)
    else:
        candidates = find_stylesheet_links(html, base_url)

    candidates = [url for url in candidates if not is_excluded_host(url)]
    url = pick_stylesheet(candidates)
    if not url:
        where = "platform CDN reference" if discovery == "cdn" else "<link rel=\"stylesheet\">"
        raise NotFoundError(f"No usable stylesheet found in page markup (looked for {where})")
    return url


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CssBlock:
    prelude: str
    body: str
    offset: int

    @property
    def at_keyword(self):
        """Lowercase at-rule name, or None for style rules."""
        if not self.prelude.startswith("@"):
            return None
        match = AT_KEYWORD_PATTERN.match(self.prelude)
        return match.group(1).lower() if match else ""


def skip_string(text, start):
    """Return the index just past the quoted string opening at start.

    An unescaped newline ends an unterminated string, leaving the newline
    for the caller to scan.
    """
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            return i
        i += 1
    return n


def skip_comment(text, start):
    """Return the index just past the comment opening at start."""
    end = text.find("*/", start + 2)
    return len(text) if end == -1 else end + 2


def find_closing_brace(text, open_index):
    """Return the index of the brace closing the one at open_index, or None."""
    depth = 0
    i = open_index
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "\"'":
            i = skip_string(text, i)
            continue
        if text.startswith("/*", i):
            i = skip_comment(text, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def tokenize_blocks(css_text, verbose=False):
    """Split CSS text into its depth-0 `prelude { body }` blocks.

    Strings and comments are skipped as opaque spans. Statements ending in
    `;` at depth 0 (@import, @charset) are dropped. An unterminated block
    is skipped up to the end of its opening line and scanning resumes on
    the next line.
    """
    blocks = []
    n = len(css_text)
    i = 0
    start = 0
    while i < n:
        ch = css_text[i]
        if ch in "\"'":
            i = skip_string(css_text, i)
            continue
        if css_text.startswith("/*", i):
            i = skip_comment(css_text, i)
            continue
        if ch == ";" or ch == "}":
            # end of a statement at-rule, or a stray closing brace
            start = i + 1
        elif ch == "{":
            close = find_closing_brace(css_text, i)
            if close is None:
                print_debug(f"skipping unterminated block at offset {i}", verbose)
                newline = css_text.find("\n", i)
                if newline == -1:
                    break
                i = newline + 1
                start = i
                continue
            prelude = COMMENT_PATTERN.sub("", css_text[start:i]).strip()
            blocks.append(CssBlock(prelude=prelude, body=css_text[i + 1:close], offset=start))
            i = close + 1
            start = i
            continue
        i += 1
    return blocks


# ---------------------------------------------------------------------------
# Rule records and matching
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleRecord:
    conditions: tuple
    selector: str
    body: str

    def serialize(self):
        """Render the rule, wrapped in each enclosing condition, outermost first."""
        text = f"{self.selector} {{\n{self.body}\n}}"
        for condition in reversed(self.conditions):
            text = f"{condition} {{\n{text}\n}}"
        return text


def iter_style_rules(css_text, conditions=(), verbose=False):
    """Yield RuleRecords for every style rule, descending into conditional blocks.

    Top-level rules come first, then the rules of each conditional block in
    source order.
    """
    blocks = tokenize_blocks(css_text, verbose)

    for block in blocks:
        if block.at_keyword is not None:
            continue
        selector = block.prelude
        body = block.body.strip()
        if not selector or not body:
            continue
        yield RuleRecord(conditions=conditions, selector=selector, body=body)

    for block in blocks:
        if block.at_keyword not in CONDITIONAL_AT_RULES:
            continue
        yield from iter_style_rules(block.body, conditions + (block.prelude,), verbose)


def walk_style_rules(css_text, conditions=(), verbose=False):
    """Yield RuleRecords in source order, entering conditional blocks where they appear."""
    for block in tokenize_blocks(css_text, verbose):
        if block.at_keyword is None:
            body = block.body.strip()
            if block.prelude and body:
                yield RuleRecord(conditions=conditions, selector=block.prelude, body=body)
        elif block.at_keyword in CONDITIONAL_AT_RULES:
            yield from walk_style_rules(block.body, conditions + (block.prelude,), verbose)


def class_pattern(name):
    return re.compile(r"\." + re.escape(name) + r"(?!" + IDENT_CHARS + r")")


def tag_pattern(name):
    return re.compile(
        r"(?:^|(?<=[\s,}>+~]))" + re.escape(name) + r"(?=$|[\s{:.#\[,>+~])",
        re.IGNORECASE,
    )


def build_matchers(selectors):
    """Compile one match pattern per target selector."""
    return {
        name: class_pattern(name) if kind == "class" else tag_pattern(name)
        for name, kind in selectors.items()
    }


def extract_components(css_text, selectors, verbose=False):
    """Assign every matching rule to every target it matches."""
    components = {name: [] for name in selectors}
    if not selectors:
        return components

    matchers = build_matchers(selectors)
    for rule in iter_style_rules(css_text, verbose=verbose):
        block = None
        for name, pattern in matchers.items():
            if pattern.search(rule.selector):
                block = block or rule.serialize()
                components[name].append(block)
    return components


# ---------------------------------------------------------------------------
# Selector collection
# ---------------------------------------------------------------------------

def add_selector(selectors, name, kind, verbose=False):
    """Insert a target unless it (or a case variant of a tag) is already present."""
    if kind == "tag":
        name = name.lower()
    if name in selectors:
        if selectors[name] != kind:
            print_debug(f"'{name}' already collected as a {selectors[name]}, ignoring {kind}", verbose)
        return
    selectors[name] = kind


def explicit_selectors(classes=(), tags=()):
    """Build a selector set from caller-supplied class and tag lists."""
    selectors = {}
    for item in classes:
        item = item.strip().lstrip(".")
        if item:
            add_selector(selectors, item, "class")
    for item in tags:
        item = item.strip()
        if item:
            add_selector(selectors, item, "tag")
    return selectors


def selectors_in_rule_head(selector_text):
    """Return (position, name, kind) for every target found in one selector list."""
    found = []
    for match in CLASS_CHAIN_PATTERN.finditer(selector_text):
        found.append((match.start(), match.group(1), "class"))

    position = 0
    for part in selector_text.split(","):
        item = part.strip().lower()
        if item in TAG_WHITELIST:
            found.append((position + part.index(part.strip()), item, "tag"))
        position += len(part) + 1

    return sorted(found)


def mine_selectors(css_text, verbose=False):
    """Derive classes, combo-classes and whitelisted tags from the stylesheet."""
    selectors = {}
    for rule in walk_style_rules(css_text, verbose=verbose):
        for _, name, kind in selectors_in_rule_head(rule.selector):
            add_selector(selectors, name, kind, verbose)
    return selectors


def tagged_selectors(html, marker_attr="data-component"):
    """Collect the classes of every element carrying the marker attribute."""
    soup = BeautifulSoup(html, "html.parser")
    selectors = {}
    for element in soup.find_all(attrs={marker_attr: True}):
        classes = element.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        for cls in classes:
            add_selector(selectors, cls, "class")
    return selectors


def collect_selectors(config, css_text, html=None):
    """Build the selector set for the configured mode."""
    mode = config.selector_mode
    if mode == "explicit":
        return explicit_selectors(config.classes, config.tags)
    if mode == "tagged":
        return tagged_selectors(html or "", config.marker_attr)
    return mine_selectors(css_text, config.verbose)


# ---------------------------------------------------------------------------
# Custom properties
# ---------------------------------------------------------------------------

def build_variable_table(css_text):
    """Read the custom properties declared in the first :root block."""
    for block in tokenize_blocks(css_text):
        if block.prelude != ":root":
            continue
        table = {}
        for match in CUSTOM_PROPERTY_PATTERN.finditer(block.body):
            table[match.group(1)] = match.group(2).strip()
        return table
    return {}


def resolve_variables(components, variables):
    """Replace var(--name) references with their declared values.

    One substitution pass per variable, in declaration order. A value that
    references a variable declared earlier in the table is left with that
    reference in place.
    """
    if not variables:
        return {name: list(blocks) for name, blocks in components.items()}

    patterns = [
        (re.compile(r"var\(\s*" + re.escape(name) + r"\s*(?:,[^()]*)?\)"), value)
        for name, value in variables.items()
    ]
    resolved = {}
    for name, blocks in components.items():
        out = []
        for block in blocks:
            for pattern, value in patterns:
                block = pattern.sub(lambda _m, v=value: v, block)
            out.append(block)
        resolved[name] = out
    return resolved


def dedupe_components(components):
    """Drop exact duplicate blocks per selector, keeping first-seen order."""
    return {name: list(dict.fromkeys(blocks)) for name, blocks in components.items()}


def build_component_index(css_text, selectors, verbose=False):
    """Extract, resolve and dedupe rule blocks for every selector."""
    variables = build_variable_table(css_text)
    components = extract_components(css_text, selectors, verbose)
    return dedupe_components(resolve_variables(components, variables))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def run_sync(config, fetch=None):
    """Fetch, extract and write both artifacts. Returns the component index."""
    fetch = fetch or fetch_text
    html = None

    if not config.css_url or config.selector_mode == "tagged":
        print(f"Fetching page: {config.page_url}")
        html = fetch(config.page_url, timeout=config.timeout)

    if config.css_url:
        css_url = config.css_url
        print_step(f"Using configured stylesheet: {css_url}")
    else:
        print_step("Finding stylesheet URL...")
        css_url = locate_stylesheet(html, config.discovery, base_url=config.page_url)
        print_step(f"Stylesheet: {css_url}")

    css_text = fetch(css_url, timeout=config.timeout)

    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    css_path = output_dir / config.css_output
    css_path.write_text(css_text, encoding="utf-8")
    print_step(f"Snapshot saved to: {css_path} ({len(css_text)} bytes)")

    selectors = collect_selectors(config, css_text, html)
    print_step(f"Collected {len(selectors)} selector(s) ({config.selector_mode} mode)")

    components = build_component_index(css_text, selectors, config.verbose)

    json_path = output_dir / config.json_output
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(components, f, indent=2, ensure_ascii=False)
        f.write("\n")
    print_step(f"Component index saved to: {json_path}")

    return components


def print_summary(components):
    """Print a short per-selector summary to stdout."""
    total = sum(len(blocks) for blocks in components.values())
    empty = [name for name, blocks in components.items() if not blocks]
    print(f"\nSynced {len(components)} selector(s), {total} rule block(s)")
    for name, blocks in list(components.items())[:15]:
        print(f"  {name}: {len(blocks)}")
    if len(components) > 15:
        print(f"  ... and {len(components) - 15} more")
    if empty:
        print(f"No rules found for: {', '.join(empty[:10])}" + (" ..." if len(empty) > 10 else ""))


def main(argv=None):
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse has already printed usage and the error to stderr
        if e.code in (0, None):
            raise
        return 1

    try:
        config = config_from_args(args)
        components = run_sync(config)
    except (SyncError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_summary(components)
    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
