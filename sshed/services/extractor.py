from dataclasses import dataclass, field
from typing import List, Optional
import re

GROUP_PREFIX, GROUP_SUFFIX = "#--(", ")"
TAG_PREFIX, TAG_SUFFIX = "#--[", "]"
COMMENT_PREFIX = "# "

_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")


@dataclass
class ExtractedBlock:
    """One blank-line delimited section of the config file."""
    index: int
    body: str
    groups: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    comment: Optional[str] = None


def split_blocks(content: str) -> List[str]:
    """Splits file content on blank lines, dropping empty blocks."""
    content = content.replace("\r\n", "\n")
    blocks = (block.strip() for block in _BLANK_LINE_RE.split(content))
    return [block for block in blocks if block]


def _names(line: str, prefix: str, suffix: str) -> List[str]:
    if not line.endswith(suffix):
        return []
    inner = line[len(prefix):len(line) - len(suffix)]
    return [name.strip() for name in inner.split(",") if name.strip()]


class BlockExtractor:
    """Peels the metadata annotations off each block of an ssh config.

    Annotations are the leading lines of a block::

        #--(dev, ops)        groups
        #--[web]             tags
        # free text          comment

    They may repeat and come in any order. Extraction stops at the first line
    that is none of them; that line and everything after it is the body.
    """

    @staticmethod
    def extract_block(block: str, index: int = 0) -> ExtractedBlock:
        lines = block.splitlines()
        extracted = ExtractedBlock(index=index, body="")

        while lines:
            line = lines[0].strip()
            if line.startswith(GROUP_PREFIX):
                extracted.groups.extend(_names(line, GROUP_PREFIX, GROUP_SUFFIX))
            elif line.startswith(TAG_PREFIX):
                extracted.tags.extend(_names(line, TAG_PREFIX, TAG_SUFFIX))
            elif line.startswith(COMMENT_PREFIX):
                extracted.comment = line[len(COMMENT_PREFIX):].strip()
            else:
                break
            lines.pop(0)

        extracted.body = "\n".join(lines)
        return extracted

    @classmethod
    def extract(cls, content: str) -> List[ExtractedBlock]:
        return [cls.extract_block(block, index) for index, block in enumerate(split_blocks(content))]
