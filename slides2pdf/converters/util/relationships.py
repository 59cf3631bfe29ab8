import logging
import posixpath
from dataclasses import dataclass, field

from slides2pdf.exceptions import UnresolvedRelationshipError
from slides2pdf.converters.util.package import Package

logger = logging.getLogger(__name__)

REL_NS = "{http://schemas.openxmlformats.org/package/2006/relationships}"
REL_RELATIONSHIP = f"{REL_NS}Relationship"

# Top-level content folder of a presentation package
CONTENT_ROOT = "ppt"
SLIDES_FOLDER = "ppt/slides"

# Relationship type suffixes (the full type is a schema URI)
RT_IMAGE = "/image"
RT_SLIDE_LAYOUT = "/slideLayout"
RT_SLIDE_MASTER = "/slideMaster"


@dataclass(frozen=True)
class Relationship:
    rel_id: str
    target: str  # normalized entry name, or the raw URI for external targets
    rel_type: str = ""
    is_external: bool = False


@dataclass
class RelationshipTable:
    """Relationship id -> target mapping of one package part."""

    source: str = ""
    relationships: dict[str, Relationship] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.relationships)

    def __contains__(self, rel_id: str) -> bool:
        return rel_id in self.relationships

    def get(self, rel_id: str | None) -> Relationship | None:
        if not rel_id:
            return None
        return self.relationships.get(rel_id)

    def require(self, rel_id: str | None) -> Relationship:
        """Resolve ``rel_id`` to an internal package entry.

        Raises:
            UnresolvedRelationshipError: Unknown id, or the target is external.
        """
        rel = self.get(rel_id)
        if rel is None or rel.is_external:
            raise UnresolvedRelationshipError(
                rel_id or "", f"Unresolved relationship id {rel_id!r} in {self.source}"
            )
        return rel

    def first_of_type(self, type_suffix: str) -> Relationship | None:
        for rel in self.relationships.values():
            if rel.rel_type.endswith(type_suffix) and not rel.is_external:
                return rel
        return None


def relationships_path_for(part_path: str) -> str:
    """``ppt/slides/slide1.xml`` -> ``ppt/slides/_rels/slide1.xml.rels``."""
    folder, name = posixpath.split(part_path)
    return posixpath.join(folder, "_rels", f"{name}.rels")


def normalize_target(base_folder: str, target: str) -> str:
    """Turn a relationship target into an absolute entry name.

    ``../media/image1.png`` relative to ``ppt/slides`` becomes
    ``ppt/media/image1.png``, a bare ``image2.png`` becomes
    ``ppt/slides/image2.png``. Targets already rooted at the content
    folder are kept, and a leading ``/`` (absolute part name) is dropped.
    """
    if target.startswith("/"):
        return target.lstrip("/")
    if target.startswith(f"{CONTENT_ROOT}/"):
        return target
    return posixpath.normpath(posixpath.join(base_folder, target))


def parse_relationships(xml_root, part_path: str) -> RelationshipTable:
    base_folder = posixpath.dirname(part_path)
    table = RelationshipTable(source=part_path)
    for rel in xml_root.iter(REL_RELATIONSHIP):
        rel_id = rel.get("Id")
        target = rel.get("Target")
        if not rel_id or not target:
            continue
        is_external = rel.get("TargetMode", "") == "External"
        table.relationships[rel_id] = Relationship(
            rel_id=rel_id,
            target=target if is_external else normalize_target(base_folder, target),
            rel_type=rel.get("Type") or "",
            is_external=is_external,
        )
    return table


def resolve_part_relationships(package: Package, part_path: str) -> RelationshipTable:
    """Read the relationship manifest of any part.

    A part without a manifest (or with an unreadable one) simply has no
    relationships.
    """
    rels_path = relationships_path_for(part_path)
    try:
        root = package.read_xml_root(rels_path)
    except Exception as e:
        logger.warning(f"Ignoring unreadable relationships [{rels_path}]: {e}")
        return RelationshipTable(source=part_path)
    if root is None:
        return RelationshipTable(source=part_path)
    table = parse_relationships(root, part_path)
    logger.debug(f"Resolved {len(table)} relationships for [{part_path}]")
    return table


def resolve_slide_relationships(package: Package, slide_index: int) -> RelationshipTable:
    return resolve_part_relationships(
        package, f"{SLIDES_FOLDER}/slide{slide_index}.xml"
    )
