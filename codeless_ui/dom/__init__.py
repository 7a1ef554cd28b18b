"""Document tree access: the lxml backend, selector compiler and node lists."""

from .document import Document, Fragment, LxmlDocument
from .nodelist import NodeList, NodeListPopulator, split_insert_suffix
from .selector import SelectorCompiler, css_to_xpath

__all__ = [
    "Document",
    "Fragment",
    "LxmlDocument",
    "NodeList",
    "NodeListPopulator",
    "SelectorCompiler",
    "css_to_xpath",
    "split_insert_suffix",
]
