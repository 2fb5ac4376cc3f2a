# --- File: ./resticweb/render.py ---
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from flask import current_app, render_template
from jinja2 import TemplateNotFound
from markupsafe import Markup

from .errors import RenderError

logger = logging.getLogger(__name__)

DIRTREE_TEMPLATE = 'dirtree'
DIR_PARAM = 'dir'

# ===================================================================
# --- TEMPLATE ENGINE ---
# ===================================================================

class TemplateRenderer:
    """render(name, data) -> text, backed by the Flask app's Jinja environment."""

    suffix = '.html'

    def render(self, name, data):
        try:
            return render_template(name + self.suffix, **data)
        except TemplateNotFound as e:
            raise RenderError(f"unknown/unregistered template '{name}'") from e


def current_renderer():
    return current_app.extensions['resticweb.renderer']


# ===================================================================
# --- RENDER CONTEXT ---
# ===================================================================

def set_query_param(url, key, value):
    """Returns `url` with query parameter `key` replaced by `value`. Keys are sorted."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    query.sort(key=lambda kv: kv[0])
    return urlunsplit(parts._replace(query=urlencode(query)))


@dataclass(frozen=True)
class NodesContext:
    """Per-request display state shared by every node of one render pass."""
    params: Mapping[str, str] = field(default_factory=dict)
    snapshot_id: str = ''
    curpath: str = ''
    url: str = ''

    def __post_init__(self):
        if not isinstance(self.params, MappingProxyType):
            object.__setattr__(self, 'params', MappingProxyType(dict(self.params)))

    def for_node(self, node):
        """A copy whose URL opens `node`. The receiver is left untouched."""
        return replace(self, url=set_query_param(self.url, DIR_PARAM, node.path_chain))


# ===================================================================
# --- TREE RENDERING ---
# ===================================================================

def render_node(node, ctx, renderer=None):
    """
    Renders one node through the 'dirtree' template. The template renders the
    node's children itself, so this recurses through the whole subtree.
    A failure is replaced by an inline error so the rest of the page survives.
    """
    renderer = renderer or current_renderer()
    node_ctx = ctx.for_node(node)
    try:
        html = renderer.render(DIRTREE_TEMPLATE, {'node': node, 'ctx': node_ctx})
    except Exception as e:
        logger.warning(f"Failed to render tree node {node.path_chain}: {e}", exc_info=True)
        return Markup('<span class="render-error">{}</span>').format(f"{node.path_chain}: {e}")
    return Markup(html)


def render_nodes(nodes, ctx, renderer=None):
    """Concatenates the fragments of `nodes` in sibling order."""
    return Markup('').join(render_node(node, ctx, renderer) for node in nodes)
