# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_property, make_feed_xml
"""

from .utils import make_feed_snapshot, make_feed_xml, make_listing_node, make_property, realty_object

__all__ = ["make_property", "make_feed_xml", "make_feed_snapshot", "make_listing_node", "realty_object"]
