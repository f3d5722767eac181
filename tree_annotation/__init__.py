"""Tree Annotation -- build labeled trees over token sequences.

Leaves are loaded from a token sequence, adjacent subtrees are selected
and combined under new parents, and the resulting forest is exported as
a tikz-qtree string, as JSON, or as a shareable base64 link.

Based on the tree annotation tool by the Digital and Cognitive
Musicology Lab (DCML) at EPFL.

See: https://github.com/DCMLab/tree-annotation-code
"""
