"""Border explorer.

Turns a Wikidata JSON dump into a graph of places sharing a border, ranks
the categories of places whose graph is worth drawing, and exports one
GeoJSON node/edge pair per category.
"""

__version__ = "0.1.0"
