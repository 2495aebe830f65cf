"""Resolve — map URL paths to files, indexes, and dynamic modules.

``PathResolver`` probes the filesystem, ``PathInfoCache`` memoizes and
coalesces lookups, ``find_up_tree_module`` searches ancestors for a
module that handles a missing path.
"""
