"""
shelf-locator: Call number to shelf location resolution.

Maps a library, collection and call number, as shown in a catalog in either
display language, to the physical shelf segments that hold the item, using a
published spreadsheet of call number ranges per collection.
"""

__version__ = "0.1.0"
