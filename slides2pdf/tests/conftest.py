import io
import zipfile

import pytest
from PIL import Image

P_NS = "http://schemas.openxmlformats.org/presentationml/2006/main"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_RELS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
RT = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

EMU_PER_INCH = 914400


class Deck:
    """Builds minimal presentation packages for tests."""

    @staticmethod
    def presentation_xml(cx: int = 9144000, cy: int = 5143500) -> str:
        return (
            f'<p:presentation xmlns:p="{P_NS}" xmlns:r="{R_NS}">'
            f'<p:sldSz cx="{cx}" cy="{cy}"/>'
            "</p:presentation>"
        )

    @staticmethod
    def slide_xml(*shapes: str, background: str = "") -> str:
        return (
            f'<p:sld xmlns:p="{P_NS}" xmlns:a="{A_NS}" xmlns:r="{R_NS}">'
            f"<p:cSld>{background}<p:spTree>{''.join(shapes)}</p:spTree></p:cSld>"
            "</p:sld>"
        )

    @staticmethod
    def xfrm(x: int, y: int, cx: int, cy: int) -> str:
        return f'<a:xfrm><a:off x="{x}" y="{y}"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm>'

    @staticmethod
    def text_shape(
        paragraphs: str,
        ph_type: str | None = None,
        xfrm: str | None = None,
        anchor: str | None = None,
    ) -> str:
        ph = ""
        if ph_type is not None:
            ph = f'<p:ph type="{ph_type}"/>' if ph_type else "<p:ph/>"
        body_pr = f'<a:bodyPr anchor="{anchor}"/>' if anchor else "<a:bodyPr/>"
        return (
            "<p:sp>"
            f'<p:nvSpPr><p:cNvPr id="2" name="Text"/><p:cNvSpPr/><p:nvPr>{ph}</p:nvPr></p:nvSpPr>'
            f"<p:spPr>{xfrm or ''}</p:spPr>"
            f"<p:txBody>{body_pr}{paragraphs}</p:txBody>"
            "</p:sp>"
        )

    @staticmethod
    def paragraph(*runs: str, ppr: str = "") -> str:
        return f"<a:p>{ppr}{''.join(runs)}</a:p>"

    @staticmethod
    def run(text: str, rpr: str = "") -> str:
        return f'<a:r>{rpr}<a:t xml:space="preserve">{text}</a:t></a:r>'

    @staticmethod
    def shape(prst: str, xfrm: str, fill: str = "", line: str = "") -> str:
        return (
            "<p:sp>"
            '<p:nvSpPr><p:cNvPr id="3" name="Shape"/><p:cNvSpPr/><p:nvPr/></p:nvSpPr>'
            f'<p:spPr>{xfrm}<a:prstGeom prst="{prst}"><a:avLst/></a:prstGeom>{fill}{line}</p:spPr>'
            "</p:sp>"
        )

    @staticmethod
    def picture(rel_id: str, xfrm: str, descr: str = "") -> str:
        return (
            "<p:pic>"
            f'<p:nvPicPr><p:cNvPr id="4" name="Picture" descr="{descr}"/><p:cNvPicPr/><p:nvPr/></p:nvPicPr>'
            f'<p:blipFill><a:blip r:embed="{rel_id}"/></p:blipFill>'
            f"<p:spPr>{xfrm}</p:spPr>"
            "</p:pic>"
        )

    @staticmethod
    def rels_xml(*relationships: tuple[str, str, str]) -> str:
        items = "".join(
            f'<Relationship Id="{rel_id}" Type="{RT}/{rel_type}" Target="{target}"/>'
            for rel_id, rel_type, target in relationships
        )
        return f'<Relationships xmlns="{PKG_RELS_NS}">{items}</Relationships>'

    @staticmethod
    def png_bytes(color=(255, 0, 0), size=(20, 10)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def package(
        slides: dict[int, str] | None = None,
        *,
        entries: dict[str, str | bytes] | None = None,
        order: list[str] | None = None,
        presentation: str | None = None,
    ) -> bytes:
        """Zip a deck; ``order`` fixes the archive order of the named entries."""
        files: dict[str, str | bytes] = {}
        files["ppt/presentation.xml"] = (
            presentation if presentation is not None else Deck.presentation_xml()
        )
        for number, xml in (slides or {}).items():
            files[f"ppt/slides/slide{number}.xml"] = xml
        files.update(entries or {})

        names = list(order or [])
        names += [name for name in files if name not in names]

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name in names:
                data = files[name]
                zf.writestr(name, data.encode("utf-8") if isinstance(data, str) else data)
        return buffer.getvalue()


@pytest.fixture
def deck() -> type[Deck]:
    return Deck
