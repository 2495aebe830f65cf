"""Routing — the resource tree and its relative-path contract.

Resources own a path segment and children; a request descends the tree
segment by segment, with the unconsumed remainder threaded through to
the matched resource.
"""
