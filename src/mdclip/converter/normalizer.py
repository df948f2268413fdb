"""Pre-extraction tree normalization.

Readability-style extractors score nodes by class names and link density,
which makes them drop callouts, wrapped tables and link-wrapped headings.
TreeNormalizer rewrites those structures in place before extraction.
"""

from typing import ClassVar

from bs4 import Tag

from mdclip.converter.nodes import HEADING_TAGS, has_class, heading_only_child
from mdclip.logger import logger


class TreeNormalizer:
    """Protects callouts, tables, code and headings from content extraction.

    Rules run as tree-wide passes in a fixed order; wrapper unwrapping must
    come after callout and table lifting.
    """

    CALLOUT_SELECTOR: ClassVar[str] = ".callout, [data-callout]"
    WRAPPER_CLASS: ClassVar[str] = "el-div"
    TABLE_WRAPPER_CLASS: ClassVar[str] = "el-table"
    IMPORTANT_SELECTOR: ClassVar[str] = ".callout, [data-callout], table, pre, code"
    PRESERVE_ATTR: ClassVar[str] = "data-mdclip-preserve"
    CONTENT_CLASSES: ClassVar[tuple[str, ...]] = ("article", "content", "main")

    def normalize(self, tree: Tag) -> Tag:
        """Apply every rule to ``tree`` in place and return it.

        Args:
            tree: Parsed page, usually a BeautifulSoup document.

        Returns:
            The same tree, mutated.

        """
        callouts = self._protect_callouts(tree)
        tables = self._lift_wrapped_tables(tree)
        wrappers = self._unwrap_wrappers(tree)
        anchors = self._unwrap_heading_links(tree)
        headings = self._clear_heading_classes(tree)

        logger.debug(
            "Normalized tree: %d callouts, %d tables, %d wrappers, %d heading links, "
            "%d heading classes",
            callouts, tables, wrappers, anchors, headings,
        )
        return tree

    def _mark(self, element: Tag, kind: str) -> None:
        element[self.PRESERVE_ATTR] = kind
        classes = list(element.get("class") or [])
        for class_name in self.CONTENT_CLASSES:
            if class_name not in classes:
                classes.append(class_name)
        element["class"] = classes

    def _protect_callouts(self, tree: Tag) -> int:
        count = 0
        for callout in tree.select(self.CALLOUT_SELECTOR):
            if callout.decomposed:
                continue
            self._mark(callout, "callout")
            count += 1

            wrapper = callout.parent
            if has_class(wrapper, self.WRAPPER_CLASS) and wrapper.parent is not None:
                wrapper.insert_before(callout)
                wrapper.decompose()
        return count

    def _lift_wrapped_tables(self, tree: Tag) -> int:
        count = 0
        for wrapper in tree.select(f".{self.TABLE_WRAPPER_CLASS}"):
            if wrapper.decomposed or wrapper.parent is None:
                continue
            table = wrapper.find("table")
            if table is None:
                continue
            self._mark(table, "table")
            wrapper.insert_before(table)
            wrapper.decompose()
            count += 1
        return count

    def _unwrap_wrappers(self, tree: Tag) -> int:
        count = 0
        for wrapper in tree.select(f".{self.WRAPPER_CLASS}"):
            if wrapper.decomposed or wrapper.parent is None:
                continue
            if wrapper.select_one(self.IMPORTANT_SELECTOR) is not None:
                wrapper.unwrap()
                count += 1
        return count

    def _unwrap_heading_links(self, tree: Tag) -> int:
        count = 0
        for anchor in tree.find_all("a"):
            if anchor.parent is None:
                continue
            heading = heading_only_child(anchor)
            if heading is not None:
                anchor.insert_before(heading)
                anchor.decompose()
                count += 1
        return count

    def _clear_heading_classes(self, tree: Tag) -> int:
        count = 0
        for heading in tree.find_all(list(HEADING_TAGS)):
            if "class" in heading.attrs:
                del heading["class"]
                count += 1
        return count
