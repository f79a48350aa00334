"""
Catalogueur - game metadata resolution and storefront library crawling

Resolves local game entries against remote catalogs (GiantBomb, GOG,
TV Tropes) and crawls storefront order histories into deduplicated
game records.
"""

__version__ = "0.3.0"
