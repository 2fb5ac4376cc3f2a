# --- File: ./resticweb/blueprints/browse.py ---
import posixpath

from flask import (
    Blueprint, Response, render_template, request, current_app
)

from ..errors import ValidationError
from ..decoder import decode_listing, decode_snapshots
from ..render import NodesContext
from ..request_params import (
    get_params, get_bool_param, get_comma_sep_params, get_required_param, get_absolute_path_param
)
from ..tree import build_tree

browse_bp = Blueprint('browse', __name__)


def get_provider():
    return current_app.extensions['resticweb.provider']


# ===================================================================
# --- LISTING -> TREE BRIDGE ---
# ===================================================================

def run_ls(args, url, provider):
    """
    Lists one snapshot and folds the result into a tree.

    `dir` (set by the tree's own links) takes precedence over `path`, so
    clicking a directory lists that directory. Query parameters, `dir` and
    `path` included, are passed through to the templates as received.
    """
    params = get_params(args)
    snapshot_id = get_required_param('id', args, 'snapshot id')
    params['id'] = snapshot_id

    path_filter = (get_absolute_path_param('dir', args)
                   or get_absolute_path_param('path', args, unquote_again=True))

    recursive = get_bool_param('recursive', args)
    long_format = get_bool_param('long', args)

    buf = provider.ls(snapshot_id, paths=[path_filter] if path_filter else [],
                      recursive=recursive, long=long_format)
    ls_snapshot, entries = decode_listing(buf)
    dir_tree = build_tree(entries)

    nodes_ctx = NodesContext(
        params=params,
        snapshot_id=snapshot_id,
        curpath=path_filter or '/',
        url=url,
    )
    return {
        'ls_snapshot': ls_snapshot,
        'dir_tree': dir_tree,
        'params': params,
        'snapshot_id': snapshot_id,
        'curpath': nodes_ctx.curpath,
        'nodes_ctx': nodes_ctx,
    }


def run_snapshots(args, provider):
    hosts = get_comma_sep_params('host', args)
    tags = get_comma_sep_params('tag', args)
    paths = get_comma_sep_params('path', args)
    buf = provider.snapshots(hosts=hosts, tags=tags, paths=paths)
    return {
        'snapshots': decode_snapshots(buf),
        'params': get_params(args),
        'repo': current_app.config.get('RESTIC_REPOSITORY', ''),
    }


# ===================================================================
# --- ROUTES ---
# ===================================================================

@browse_bp.route('/')
def index():
    return render_template('index.html', repo=current_app.config.get('RESTIC_REPOSITORY', ''))


@browse_bp.route('/snapshots')
def snapshots():
    context = run_snapshots(request.args, get_provider())
    return render_template('snapshots.html', curpath='/snapshots', **context)


@browse_bp.route('/ls')
def ls():
    context = run_ls(request.args, request.full_path, get_provider())
    current_app.logger.debug(
        f"Listed snapshot {context['ls_snapshot'].short_id} under {context['curpath']}: "
        f"{len(context['dir_tree'])} top-level nodes"
    )
    return render_template('ls.html', **context)


@browse_bp.route('/dump')
def dump():
    snapshot_id = get_required_param('id', request.args, 'snapshot id')
    path = get_absolute_path_param('path', request.args)
    if path is None:
        raise ValidationError("no file path is given in request")
    chunk_size = current_app.config.get('DUMP_CHUNK_SIZE', 64 * 1024)
    chunks = get_provider().dump(snapshot_id, path, chunk_size=chunk_size)
    filename = posixpath.basename(path.rstrip('/')) or 'dump'
    response = Response(chunks, mimetype='application/octet-stream')
    response.headers.set('Content-Disposition', 'attachment', filename=filename)
    return response


@browse_bp.route('/healthz')
def healthz():
    return Response('ok', mimetype='text/plain')
