"""Pytest configuration and shared fixtures for the component sync test suite."""

import pytest


PAGE_URL = "https://example-site.webflow.io/"
BUNDLE_URL = (
    "https://cdn.prod.website-files.com/64f0c0ffee1234/css/"
    "example-site.webflow.shared.4d3c2b1a0.min.css"
)

SYNC_ENV_VARS = [
    "PAGE_URL",
    "CSS_URL",
    "COMPONENT_CLASSES",
    "COMPONENT_TAGS",
    "SELECTOR_MODE",
    "COMPONENT_MARKER",
    "CSS_DISCOVERY",
    "OUTPUT_DIR",
]


@pytest.fixture(autouse=True)
def clean_sync_env(monkeypatch):
    """Keep the caller's environment from leaking into the CLI defaults."""
    for name in SYNC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Sample HTML fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def page_url():
    return PAGE_URL


@pytest.fixture
def bundle_url():
    return BUNDLE_URL


@pytest.fixture
def sample_html():
    """Published page with a font link, the site bundle, a local sheet and tagged elements."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Example Site</title>
    <link rel="stylesheet" href="https://fonts.googleapis.com/css?family=Inter:400,700">
    <link href="{BUNDLE_URL}" rel="stylesheet" type="text/css">
    <link rel="stylesheet" href="/css/local.css">
    <link rel="icon" href="/favicon.ico">
    <script src="https://www.googletagmanager.com/gtag/js?id=G-XXXX"></script>
</head>
<body>
    <div class="hero">
        <h1>Welcome</h1>
        <a class="btn btn-primary" data-component href="/signup">Sign up</a>
    </div>
    <div class="card" data-component="true">
        <h2>Card title</h2>
    </div>
    <div class="footer">Not a component</div>
</body>
</html>"""


@pytest.fixture
def sample_html_no_stylesheet():
    """Page whose only stylesheets are third-party fonts."""
    return """<html>
<head>
    <link rel="stylesheet" href="https://fonts.googleapis.com/css2?family=Inter">
    <link rel="stylesheet" href="https://use.typekit.net/abc1234.css">
</head>
<body><p>Hello</p></body>
</html>"""


# ---------------------------------------------------------------------------
# Sample CSS fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_css():
    """Stylesheet with custom properties, components, tags and conditional blocks."""
    return """\
@charset "UTF-8";
@import url("https://fonts.googleapis.com/css?family=Inter");

:root {
    --brand: #ff0000;
    --radius: 4px;
    --shadow: 0 1px 2px var(--ink);
    --ink: #111111;
}

body {
    font-family: Inter, sans-serif;
}

h1 {
    font-size: 36px;
}

.btn {
    color: var(--brand);
    border-radius: var(--radius);
}

.btn-primary {
    background-color: var(--brand);
}

.btn.is-large {
    padding: 16px 24px;
}

.card a,
.card h2 {
    color: var(--ink);
}

a:hover {
    color: #004499;
}

/* braces inside strings must not end the block */
.card {
    box-shadow: var(--shadow);
    content: "{not a block}";
}

@font-face {
    font-family: Inter;
    src: url("inter.woff2") format("woff2");
}

@keyframes fade {
    from { opacity: 0; }
    to { opacity: 1; }
}

@media (max-width: 767px) {
    h1 { font-size: 28px; }
    .btn { padding: 8px; }
}

@supports (display: grid) {
    @media (min-width: 992px) {
        .card { display: grid; }
    }
}
"""


@pytest.fixture
def sample_css_empty():
    """Empty CSS content."""
    return ""


@pytest.fixture
def sample_css_malformed():
    """CSS whose last rule is never closed."""
    return """\
.btn {
    color: red;
}

.card {
    color: blue;
/* unclosed rule
.broken {
    color: green;
"""


# ---------------------------------------------------------------------------
# Network stubs
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_fetch(sample_html, sample_css):
    """Stand-in for fetch_text serving the sample page and bundle by URL."""
    responses = {PAGE_URL: sample_html, BUNDLE_URL: sample_css}
    calls = []

    def fetch(url, timeout=None):
        calls.append(url)
        return responses[url]

    fetch.calls = calls
    fetch.responses = responses
    return fetch
