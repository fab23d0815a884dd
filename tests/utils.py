from itertools import pairwise

from locpath import NodeKind


def assert_nodes_are_in_document_order(*nodes):
    # this avoids the usage of .document_order_index
    if len(nodes) <= 1:
        raise ValueError
    if len(nodes) > 2:
        for node_pair in pairwise(nodes):
            assert_nodes_are_in_document_order(*node_pair)
        return

    lhn, rhn = nodes
    assert lhn is not rhn

    for lhn_index, rhn_index in zip(index_path(lhn), index_path(rhn)):
        if lhn_index < rhn_index:
            return
        if lhn_index == rhn_index:
            continue
        raise AssertionError

    # one is an ancestor of the other
    assert len(index_path(lhn)) < len(index_path(rhn))


def element(tree, local_name):
    """Returns the first element with the given local name."""
    for node in tree:
        if node.kind is NodeKind.ELEMENT and node.local_name == local_name:
            return node
    raise LookupError(local_name)


def index_path(node):
    result = []
    while node.parent is not None:
        result.append(node.index)
        node = node.parent
    result.reverse()
    return result


def local_names(nodes) -> str:
    """Concatenates the local names of all elements among the nodes."""
    return "".join(n.local_name for n in nodes if n.kind is NodeKind.ELEMENT)
