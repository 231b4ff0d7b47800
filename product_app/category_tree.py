"""
Category hierarchy helpers.

Categories form a forest through ``parent``. Writes go through
``assert_valid_parent`` so cycles never get stored; ``build_tree`` still
copes with rows that were corrupted some other way.
"""
import logging

from django.conf import settings
from rest_framework.exceptions import NotFound

from .exceptions import CircularReferenceError, HasChildrenError, SelfParentError
from .models import Category

logger = logging.getLogger(__name__)


def _same(a, b):
    return a is not None and b is not None and str(a) == str(b)


def build_tree(rows):
    """
    Nest flat category rows into a list of root nodes.

    Each row needs ``id``, ``name``, ``slug`` and ``parent_id``. A node whose
    parent is missing becomes a root. A node that would close a cycle is also
    kept as a root, so every row shows up exactly once and nothing raises.
    """
    nodes = {}
    order = []
    for row in rows:
        key = str(row['id'])
        if key in nodes:
            continue
        nodes[key] = {
            'id': row['id'],
            'name': row['name'],
            'slug': row['slug'],
            'parent': row.get('parent_id'),
            'children': [],
        }
        order.append(key)

    attached_to = {}
    roots = []
    for key in order:
        node = nodes[key]
        parent_key = str(node['parent']) if node['parent'] is not None else None

        if parent_key is None or parent_key not in nodes or _closes_cycle(key, parent_key, attached_to):
            if parent_key is not None:
                logger.warning("Category %s shown as root; parent %s is missing or cyclic", key, parent_key)
            roots.append(node)
            continue

        attached_to[key] = parent_key
        nodes[parent_key]['children'].append(node)

    return roots


def _closes_cycle(key, parent_key, attached_to):
    current = parent_key
    seen = set()
    while current is not None and current not in seen:
        if current == key:
            return True
        seen.add(current)
        current = attached_to.get(current)
    return False


def category_tree():
    rows = Category.objects.order_by('name').values('id', 'name', 'slug', 'parent_id')
    return build_tree(rows)


def assert_valid_parent(category_id, parent_id, *, max_depth=None):
    """
    Check that ``parent_id`` can become the parent of ``category_id``.

    ``category_id`` is None for a category that does not exist yet. The
    ancestor walk is bounded; running past the bound counts as a cycle.
    """
    if parent_id is None:
        return
    if _same(parent_id, category_id):
        raise SelfParentError()
    if not Category.objects.filter(pk=parent_id).exists():
        raise NotFound("Parent category not found.")
    if category_id is None:
        return

    if max_depth is None:
        max_depth = settings.CATEGORY_MAX_DEPTH

    current = parent_id
    for _ in range(max_depth):
        current = Category.objects.filter(pk=current).values_list('parent_id', flat=True).first()
        if current is None:
            return
        if _same(current, category_id):
            raise CircularReferenceError()
    raise CircularReferenceError("Category hierarchy is too deep.")


def assert_deletable(category_id):
    if Category.objects.filter(parent_id=category_id).exists():
        raise HasChildrenError()
