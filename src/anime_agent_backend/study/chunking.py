from typing import List, Sequence

from ..models import TextChunk

DEFAULT_SEPARATORS = ("\n\n", "\n", " ")


class RecursiveTextSplitter:
    """Splits text on the coarsest separator that keeps pieces under ``chunk_size``.

    Adjacent pieces are merged back up to ``chunk_size`` characters, carrying up to
    ``overlap`` characters of trailing context into the next chunk.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200, separators: Sequence[str] = DEFAULT_SEPARATORS):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be between 0 and chunk_size")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.separators = tuple(separators)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split_text(self, text: str) -> List[str]:
        if not text or not text.strip():
            return []
        return [piece for piece in self._split(text, self.separators) if piece]

    def chunk(self, document_id: str, text: str) -> List[TextChunk]:
        pieces = self.split_text(text)
        chunks: List[TextChunk] = []
        cursor = 0
        for index, piece in enumerate(pieces):
            start = text.find(piece, cursor)
            if start < 0:
                start = text.find(piece)
            cursor = max(start, 0) + 1
            chunks.append(
                TextChunk(
                    text=piece,
                    index=index,
                    document_id=document_id,
                    total_chunks=len(pieces),
                    char_start=max(start, 0),
                )
            )
        return chunks

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    def _split(self, text: str, separators: Sequence[str]) -> List[str]:
        separator = ""
        remaining: Sequence[str] = ()
        for position, candidate in enumerate(separators):
            if candidate in text:
                separator = candidate
                remaining = separators[position + 1:]
                break

        if not separator:
            return self._hard_split(text)

        chunks: List[str] = []
        fitting: List[str] = []
        for piece in (part for part in text.split(separator) if part.strip()):
            if len(piece) <= self.chunk_size:
                fitting.append(piece)
                continue
            if fitting:
                chunks.extend(self._merge(fitting, separator))
                fitting = []
            if remaining:
                chunks.extend(self._split(piece, remaining))
            else:
                chunks.extend(self._hard_split(piece))
        if fitting:
            chunks.extend(self._merge(fitting, separator))
        return chunks

    def _merge(self, pieces: List[str], separator: str) -> List[str]:
        merged: List[str] = []
        window: List[str] = []
        total = 0
        sep_len = len(separator)

        for piece in pieces:
            added = len(piece) + (sep_len if window else 0)
            if window and total + added > self.chunk_size:
                merged.append(separator.join(window).strip())
                # Drop from the front until only the overlap tail remains and the piece fits
                while window and (
                    total > self.overlap
                    or total + len(piece) + sep_len > self.chunk_size
                ):
                    total -= len(window[0]) + (sep_len if len(window) > 1 else 0)
                    window.pop(0)
            window.append(piece)
            total += len(piece) + (sep_len if len(window) > 1 else 0)

        if window:
            merged.append(separator.join(window).strip())
        return [chunk for chunk in merged if chunk]

    def _hard_split(self, text: str) -> List[str]:
        step = self.chunk_size - self.overlap
        return [text[start:start + self.chunk_size] for start in range(0, len(text), step) if text[start:start + self.chunk_size].strip()]
