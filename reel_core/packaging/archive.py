import io
import zipfile
from typing import Iterable, Tuple

from loguru import logger


class ZipArchivePackager:
    """Packs named byte buffers into one deflated zip archive, held in memory."""

    def package(self, entries: Iterable[Tuple[str, bytes]]) -> bytes:
        buf = io.BytesIO()
        names = set()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries:
                if name in names:
                    raise ValueError(f"Duplicate archive entry: {name}")
                names.add(name)
                zf.writestr(name, data)
        logger.debug(f"Packed {len(names)} entries into archive ({buf.tell()} bytes)")
        return buf.getvalue()
