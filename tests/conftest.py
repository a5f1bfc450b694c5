import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from miseflow.config import ExtractorSettings
from miseflow.fetch import make_client

JSONLD_PAGE = """<html><head><title>Doc Title</title>
<script type="application/ld+json">
{"@context": "https://schema.org", "@graph": [
  {"@type": "WebPage", "name": "Not the recipe"},
  {"@type": "Recipe", "name": "Weeknight Chili",
   "author": {"@type": "Person", "name": "Dana Cook"},
   "image": ["https://cdn.example.com/chili.jpg"],
   "recipeIngredient": ["1 lb ground beef", "2 cups chopped onion", "1 can beans, drained"],
   "recipeInstructions": [
     {"@type": "HowToStep", "text": "Brown the beef."},
     {"@type": "HowToSection", "name": "Finish", "itemListElement": [
       {"@type": "HowToStep", "text": "Add onion and beans."}
     ]}
   ]}
]}
</script>
</head><body>
<h1>Weeknight Chili</h1>
<h2>Ingredients</h2>
<ul><li>something else entirely</li></ul>
<h2>Instructions</h2>
<ol><li>Do not use this step.</li></ol>
</body></html>"""

HEADING_PAGE = """<html><head><title>Grandma's Soup | Blog</title>
<meta property="og:title" content="Grandma&#39;s Soup">
<meta name="author" content="Rosa">
</head><body>
<img src="/img/soup.jpg">
<h2>Ingredients</h2>
<ul><li>2 carrots, peeled</li><li>1 onion</li><li>1 ONION</li></ul>
<h2>Instructions</h2>
<ol><li>1. Chop the carrots and onion.</li><li>Simmer for 20 minutes.</li></ol>
<h2>Notes</h2>
<p>Freezes well.</p>
</body></html>"""

EMPTY_PAGE = "<html><head><title>Just a blog post</title></head><body><p>Nothing to cook here.</p></body></html>"


def route_handler(routes, seen=None):
    """MockTransport handler keyed on scheme://host/path (query ignored).

    A route may be text (HTML), a dict/list (JSON), an httpx.Response or a
    callable taking the request.
    """
    def handler(request: httpx.Request):
        if seen is not None:
            seen.append(str(request.url))
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = routes.get(key)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, (dict, list)):
            return httpx.Response(200, json=route)
        return httpx.Response(200, text=route, headers={"content-type": "text/html; charset=utf-8"})
    return handler


@pytest.fixture
def settings():
    return ExtractorSettings(timeout=5)


@pytest.fixture
def client_for(settings):
    def build(routes, seen=None):
        return make_client(settings, transport=httpx.MockTransport(route_handler(routes, seen)))
    return build
