# XML Namespaces used in PPTX documents
P_NS = "{http://schemas.openxmlformats.org/presentationml/2006/main}"
A_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"
R_NS = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"
CP_NS = "{http://schemas.openxmlformats.org/package/2006/metadata/core-properties}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"
XML_NS = "{http://www.w3.org/XML/1998/namespace}"

# Pre-computed tag names for hot paths (avoid repeated string concatenation)
P_CSLD = f"{P_NS}cSld"
P_BG = f"{P_NS}bg"
P_BGPR = f"{P_NS}bgPr"
P_BGREF = f"{P_NS}bgRef"
P_SPTREE = f"{P_NS}spTree"
P_SP = f"{P_NS}sp"
P_PIC = f"{P_NS}pic"
P_GRPSP = f"{P_NS}grpSp"
P_GRPSPPR = f"{P_NS}grpSpPr"
P_GRAPHICFRAME = f"{P_NS}graphicFrame"
P_CXNSP = f"{P_NS}cxnSp"
P_NVSPPR = f"{P_NS}nvSpPr"
P_NVPICPR = f"{P_NS}nvPicPr"
P_NVPR = f"{P_NS}nvPr"
P_CNVPR = f"{P_NS}cNvPr"
P_PH = f"{P_NS}ph"
P_SPPR = f"{P_NS}spPr"
P_STYLE = f"{P_NS}style"
P_TXBODY = f"{P_NS}txBody"
P_BLIPFILL = f"{P_NS}blipFill"

A_XFRM = f"{A_NS}xfrm"
A_OFF = f"{A_NS}off"
A_EXT = f"{A_NS}ext"
A_CHOFF = f"{A_NS}chOff"
A_CHEXT = f"{A_NS}chExt"
A_PRSTGEOM = f"{A_NS}prstGeom"
A_SOLIDFILL = f"{A_NS}solidFill"
A_GRADFILL = f"{A_NS}gradFill"
A_GS = f"{A_NS}gs"
A_NOFILL = f"{A_NS}noFill"
A_BLIPFILL = f"{A_NS}blipFill"
A_BLIP = f"{A_NS}blip"
A_LN = f"{A_NS}ln"
A_FILLREF = f"{A_NS}fillRef"
A_LNREF = f"{A_NS}lnRef"
A_SRGBCLR = f"{A_NS}srgbClr"
A_SCHEMECLR = f"{A_NS}schemeClr"
A_SYSCLR = f"{A_NS}sysClr"
A_PRSTCLR = f"{A_NS}prstClr"
A_LUMMOD = f"{A_NS}lumMod"
A_LUMOFF = f"{A_NS}lumOff"
A_CLRSCHEME = f"{A_NS}clrScheme"
A_BODYPR = f"{A_NS}bodyPr"
A_P = f"{A_NS}p"
A_PPR = f"{A_NS}pPr"
A_R = f"{A_NS}r"
A_RPR = f"{A_NS}rPr"
A_DEFRPR = f"{A_NS}defRPr"
A_ENDPARARPR = f"{A_NS}endParaRPr"
A_T = f"{A_NS}t"
A_BR = f"{A_NS}br"
A_FLD = f"{A_NS}fld"
A_LATIN = f"{A_NS}latin"
A_LNSPC = f"{A_NS}lnSpc"
A_SPCBEF = f"{A_NS}spcBef"
A_SPCAFT = f"{A_NS}spcAft"
A_SPCPCT = f"{A_NS}spcPct"
A_SPCPTS = f"{A_NS}spcPts"
A_BUNONE = f"{A_NS}buNone"
A_BUCHAR = f"{A_NS}buChar"
A_BUAUTONUM = f"{A_NS}buAutoNum"

R_ID = f"{R_NS}id"
R_EMBED = f"{R_NS}embed"
XML_SPACE = f"{XML_NS}space"

DC_TITLE = f"{DC_NS}title"
DC_CREATOR = f"{DC_NS}creator"
DC_SUBJECT = f"{DC_NS}subject"
CP_KEYWORDS = f"{CP_NS}keywords"


def local_name(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


def int_attr(elem, name: str, default: int = 0) -> int:
    value = elem.get(name) if elem is not None else None
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def bool_attr(elem, name: str) -> bool | None:
    """OOXML boolean attribute: ``None`` when absent."""
    value = elem.get(name) if elem is not None else None
    if value is None:
        return None
    return value in ("1", "true", "on")
